"""Logging and observability utilities for UX-Kit.

Everything logs under the ``uxkit`` logger hierarchy. This module sets up
the console/JSON handlers, times operations, and fans research workflow
events out to registered observability hooks.
"""

from __future__ import annotations

import json
import logging as std_logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

ROOT_LOGGER = "uxkit"


def setup_logging(log_level: Union[str, int] = std_logging.INFO, log_file: Optional[Path] = None) -> None:
    """Configure the ``uxkit`` logger with a console handler and an optional JSON file handler."""
    logger = std_logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    logger.handlers.clear()

    console_handler = std_logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(std_logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = std_logging.FileHandler(log_file)
        file_handler.setLevel(std_logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.info("UX-Kit logging initialized")


class JsonFormatter(std_logging.Formatter):
    """One JSON object per record, including any ``extra_fields``."""

    def format(self, record: std_logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra_fields"):
            entry.update(record.extra_fields)
        return json.dumps(entry, default=str)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PerformanceMonitor:
    """In-memory store of timing metrics keyed by name."""

    def __init__(self):
        self.metrics: Dict[str, List[Dict[str, Any]]] = {}

    def record_metric(self, name: str, value: Any, tags: Optional[Dict[str, str]] = None) -> None:
        metric = {
            "timestamp": _now(),
            "name": name,
            "value": value,
            "tags": tags or {},
        }
        self.metrics.setdefault(name, []).append(metric)
        std_logging.getLogger(f"{ROOT_LOGGER}.performance").debug(
            f"Metric recorded: {name}={value}", extra={"extra_fields": metric}
        )

    def get_metrics(self, name: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        if name:
            return {name: self.metrics.get(name, [])}
        return dict(self.metrics)

    def clear(self) -> None:
        self.metrics.clear()


performance_monitor = PerformanceMonitor()


def log_performance(operation_name: str):
    """Decorator recording the duration and outcome of ``operation_name``."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = std_logging.getLogger(f"{ROOT_LOGGER}.performance")
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.time() - start_time
                performance_monitor.record_metric(
                    f"{operation_name}_duration",
                    duration,
                    {"status": "error", "error_type": type(e).__name__},
                )
                logger.error(
                    f"Failed operation: {operation_name} after {duration:.3f}s - {e}",
                    extra={"extra_fields": {
                        "operation": operation_name,
                        "duration": duration,
                        "status": "error",
                        "error_type": type(e).__name__,
                    }},
                )
                raise

            duration = time.time() - start_time
            performance_monitor.record_metric(f"{operation_name}_duration", duration, {"status": "success"})
            logger.debug(f"Completed operation: {operation_name} in {duration:.3f}s")
            return result

        return wrapper
    return decorator


@contextmanager
def log_operation(operation_name: str, **extra_fields):
    """Log the start, completion or failure of a block of work."""
    logger = std_logging.getLogger(f"{ROOT_LOGGER}.operations")
    start_time = time.time()
    logger.info(f"Starting operation: {operation_name}", extra={"extra_fields": {
        "operation": operation_name,
        "status": "started",
        **extra_fields,
    }})

    try:
        yield
    except Exception as e:
        duration = time.time() - start_time
        logger.error(f"Failed operation: {operation_name} after {duration:.3f}s - {e}", extra={"extra_fields": {
            "operation": operation_name,
            "status": "failed",
            "duration": duration,
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields,
        }}, exc_info=True)
        raise

    duration = time.time() - start_time
    logger.info(f"Completed operation: {operation_name} in {duration:.3f}s", extra={"extra_fields": {
        "operation": operation_name,
        "status": "completed",
        "duration": duration,
        **extra_fields,
    }})


class ObservabilityHooks:
    """Callbacks keyed by research workflow event type."""

    def __init__(self):
        self.hooks: Dict[str, List[Callable[..., None]]] = {}
        self.logger = std_logging.getLogger(f"{ROOT_LOGGER}.observability")

    def register_hook(self, event_type: str, callback: Callable[..., None]) -> None:
        self.hooks.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Registered hook for event: {event_type}")

    def unregister_hook(self, event_type: str, callback: Callable[..., None]) -> None:
        callbacks = self.hooks.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def trigger_hooks(self, event_type: str, **data) -> None:
        for hook in list(self.hooks.get(event_type, [])):
            try:
                hook(**data)
            except Exception as e:
                # a broken observer must not break the workflow step
                self.logger.error(f"Hook failed for event {event_type}: {e}")

    def log_workflow_event(self, event_type: str, study_id: Optional[str] = None, **data) -> None:
        event_data = {
            "timestamp": _now(),
            "event_type": event_type,
            "study_id": study_id,
            **data,
        }
        self.logger.info(f"Workflow event: {event_type}", extra={"extra_fields": event_data})
        self.trigger_hooks(event_type, **{k: v for k, v in event_data.items() if k != "event_type"})


observability_hooks = ObservabilityHooks()


def log_artifact_event(event_type: str, artifact_type: str, study_id: Optional[str], **extra_fields) -> None:
    """Emit an ``artifact_<event>`` workflow event."""
    observability_hooks.log_workflow_event(
        f"artifact_{event_type.lower()}",
        study_id=study_id,
        artifact_type=artifact_type,
        **extra_fields,
    )


def log_error_with_context(error: Exception, context: Dict[str, Any], **extra_fields) -> None:
    """Log ``error`` together with the operation context it happened in."""
    std_logging.getLogger(f"{ROOT_LOGGER}.errors").error(
        f"Error in {context.get('operation', 'unknown operation')}: {error}",
        extra={"extra_fields": {
            "timestamp": _now(),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
            **extra_fields,
        }},
        exc_info=error,
    )


def log_project_initialized(root: str, **extra_fields) -> None:
    observability_hooks.log_workflow_event("project_initialized", root=root, **extra_fields)


def log_study_creation(study_id: str, study_name: str, **extra_fields) -> None:
    log_artifact_event("created", "study", study_id, study_name=study_name, **extra_fields)


def log_artifact_generation(study_id: str, artifact_type: str, file_path: str, **extra_fields) -> None:
    log_artifact_event("generated", artifact_type, study_id, file_path=file_path, **extra_fields)


def log_template_render(template_name: str, success: bool, **extra_fields) -> None:
    observability_hooks.log_workflow_event(
        "template_rendered" if success else "template_render_failed",
        template_name=template_name,
        **extra_fields,
    )
