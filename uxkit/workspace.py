"""Workspace management for UX-Kit projects.

This module owns the ``.uxkit/`` directory of a project: initialization,
numbered research studies, per-study source bookkeeping and the collection
of study artifacts for synthesis.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import ConfigurationService, default_configuration
from .errors import StorageError, StudyNotFoundError, UXKitError
from .models import Source, StudyMetadata, utc_timestamp
from .renderer import TemplateEngine
from .storage import FileSystemService
from .templates import PRINCIPLES, STUDY_STARTERS, TemplateService
from .uxkit_logging import (
    log_error_with_context,
    log_operation,
    log_performance,
    log_project_initialized,
    log_study_creation,
    observability_hooks,
)

logger = logging.getLogger("uxkit.workspace")

STUDY_SUBDIRECTORIES = ("summaries", "interviews", "insights")
STUDY_CONFIG_FILE = "study-config.yaml"
SOURCES_INDEX_FILE = "sources.json"

# Study, source and participant ids become single path segments.
SAFE_IDENTIFIER = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class Workspace:
    """Manage the ``.uxkit/`` artifacts of a project."""

    def __init__(self, root: Path | str, storage: Optional[FileSystemService] = None):
        self.root = Path(root).resolve()
        self.storage = storage or FileSystemService()
        self.engine = TemplateEngine()

        self.base_dir = self.root / ".uxkit"
        self.memory_dir = self.base_dir / "memory"
        self.templates_dir = self.base_dir / "templates"
        self.studies_dir = self.base_dir / "studies"
        self.config_service = ConfigurationService(self.config_path)

    @property
    def config_path(self) -> Path:
        return self.base_dir / "config.yaml"

    @property
    def principles_path(self) -> Path:
        return self.memory_dir / "principles.md"

    # ------------------------------------------------------------------
    # Project initialization
    # ------------------------------------------------------------------

    def is_initialized(self) -> bool:
        return self.config_path.is_file() and self.studies_dir.is_dir()

    @log_performance("initialize_workspace")
    def initialize(self, ai_agent: str = "cursor", *, overwrite: bool = False) -> Dict[str, Any]:
        """Create the ``.uxkit/`` structure, configuration and templates.

        Running it again on an initialized project keeps existing files
        (including edited templates) unless ``overwrite`` is set.
        """
        already_initialized = self.is_initialized()
        try:
            with log_operation("initialize_workspace", root=str(self.root), ai_agent=ai_agent):
                for directory in (self.base_dir, self.memory_dir, self.templates_dir, self.studies_dir):
                    self.storage.ensure_directory_exists(str(directory))

                if overwrite or not self.config_service.exists():
                    config = default_configuration()
                    config.ai_agent["provider"] = ai_agent
                    self.config_service.save(config)

                if overwrite or not self.principles_path.exists():
                    self.storage.write_file(str(self.principles_path), PRINCIPLES)

                installed = TemplateService(self.storage).copy_templates(str(self.root), overwrite=overwrite)

            if not already_initialized:
                log_project_initialized(str(self.root), ai_agent=ai_agent)
            return {
                "root": str(self.root),
                "config_path": str(self.config_path),
                "templates_dir": str(self.templates_dir),
                "installed_templates": installed,
                "already_initialized": already_initialized,
            }

        except UXKitError as e:
            log_error_with_context(e, {"operation": "initialize_workspace", "root": str(self.root)})
            raise

    def ai_agent_name(self) -> str:
        return str(self.config_service.get("aiAgent.provider", "cursor"))

    def template_path(self, artifact: str) -> str:
        """Path of the configured template for ``artifact`` inside this project."""
        return str(self.templates_dir / self.config_service.config.template_file(artifact))

    # ------------------------------------------------------------------
    # Studies
    # ------------------------------------------------------------------

    def study_dir(self, study_id: str) -> Path:
        return self.studies_dir / _checked_identifier(study_id, "study")

    def _next_study_number(self) -> int:
        highest = 0
        for path in self.storage.list_directories(str(self.studies_dir)):
            match = re.match(r"(\d{3})-", Path(path).name)
            if match:
                highest = max(highest, int(match.group(1)))
        return highest + 1

    def _study_identifier(self, name: str) -> str:
        slug = _slugify(name) or "study"
        number = self._next_study_number()
        candidate = f"{number:03d}-{slug}"
        while self.study_dir(candidate).exists():
            number += 1
            candidate = f"{number:03d}-{slug}"
        return candidate

    @log_performance("create_study")
    def create_study(self, name: str, description: str = "") -> StudyMetadata:
        """Create a numbered study folder with its configuration and starter files."""
        if not name or not name.strip():
            raise ValueError("Study name cannot be empty")
        if not self.is_initialized():
            raise UXKitError(f"Project is not initialized at {self.root}")

        study_id = self._study_identifier(name)
        study_path = self.study_dir(study_id)
        now = utc_timestamp()
        study = StudyMetadata(
            study_id=study_id,
            name=name.strip(),
            description=description.strip(),
            base_path=str(study_path),
            created_at=now,
            updated_at=now,
        )

        with log_operation("create_study", study_id=study_id):
            self.storage.ensure_directory_exists(str(study_path))
            for subdirectory in STUDY_SUBDIRECTORIES:
                self.storage.ensure_directory_exists(str(study_path / subdirectory))

            self._write_study_config(study)

            bindings = {"studyName": study.name, "studyId": study.study_id, "createdAt": study.created_at}
            for filename, template in STUDY_STARTERS.items():
                self.storage.write_file(str(study_path / filename), self.engine.render(template, bindings))

        log_study_creation(study.study_id, study.name)
        return study

    def _write_study_config(self, study: StudyMetadata) -> None:
        path = self.study_dir(study.study_id) / STUDY_CONFIG_FILE
        with open(path, "w", encoding="utf-8") as handle:
            yaml.dump(study.to_dict(), handle, default_flow_style=False, sort_keys=False)

    def _read_study_config(self, study_dir: Path) -> Optional[StudyMetadata]:
        path = study_dir / STUDY_CONFIG_FILE
        if not path.is_file():
            return None
        try:
            with open(path, encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable study config {path}: {e}")
            return None
        return StudyMetadata(
            study_id=str(data.get("id") or study_dir.name),
            name=str(data.get("name") or study_dir.name),
            description=data.get("description") or "",
            base_path=str(study_dir),
            status=data.get("status") or "draft",
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def list_studies(self) -> List[StudyMetadata]:
        """All studies with a readable ``study-config.yaml``, ordered by id."""
        studies = []
        for path in self.storage.list_directories(str(self.studies_dir)):
            study = self._read_study_config(Path(path))
            if study is not None:
                studies.append(study)
        return studies

    def get_study(self, study_id: str) -> StudyMetadata:
        study = self._read_study_config(self.study_dir(study_id))
        if study is None:
            raise StudyNotFoundError(study_id)
        return study

    def touch_study(self, study_id: str) -> StudyMetadata:
        """Bump ``updatedAt`` after an artifact was written."""
        study = self.get_study(study_id)
        study.updated_at = utc_timestamp()
        if study.status == "draft":
            study.status = "active"
        self._write_study_config(study)
        return study

    def delete_study(self, study_id: str) -> None:
        study = self.get_study(study_id)
        with log_operation("delete_study", study_id=study_id):
            self.storage.delete_directory(study.base_path, recursive=True)
        observability_hooks.log_workflow_event("study_deleted", study_id=study_id)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def _sources_index(self, study_id: str) -> Path:
        return self.study_dir(study_id) / SOURCES_INDEX_FILE

    def load_sources(self, study_id: str) -> List[Source]:
        self.get_study(study_id)
        path = self._sources_index(study_id)
        if not path.is_file():
            return []
        try:
            data = json.loads(self.storage.read_file(str(path)))
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt source index {path}: {e}") from e
        return [Source.from_dict(item) for item in data]

    def save_sources(self, study_id: str, sources: List[Source]) -> Path:
        path = self._sources_index(study_id)
        self.storage.write_file(str(path), json.dumps([source.to_dict() for source in sources], indent=2))
        return path

    def add_sources(self, study_id: str, sources: List[Source]) -> List[Source]:
        """Merge ``sources`` into the index; entries with a known id replace the old ones."""
        merged = {source.source_id: source for source in self.load_sources(study_id)}
        for source in sources:
            _checked_identifier(source.source_id, "source")
            merged[source.source_id] = source
        result = list(merged.values())
        self.save_sources(study_id, result)
        return result

    def get_source(self, study_id: str, source_id: str) -> Optional[Source]:
        for source in self.load_sources(study_id):
            if source.source_id == source_id:
                return source
        return None

    def mark_source_summarized(self, study_id: str, source_id: str) -> None:
        sources = self.load_sources(study_id)
        for source in sources:
            if source.source_id == source_id:
                source.summary_status = "summarized"
        self.save_sources(study_id, sources)

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def artifact_paths(self, study_id: str) -> Dict[str, str]:
        study_path = self.study_dir(study_id)
        return {
            "questions": str(study_path / "questions.md"),
            "sources": str(study_path / "sources.md"),
            "insights": str(study_path / "insights.md"),
            "summaries": str(study_path / "summaries"),
            "interviews": str(study_path / "interviews"),
        }

    def summary_path(self, study_id: str, source_id: str) -> str:
        name = _checked_identifier(source_id, "source")
        return str(self.study_dir(study_id) / "summaries" / f"{name}-summary.md")

    def interview_path(self, study_id: str, participant_id: str) -> str:
        name = _checked_identifier(participant_id, "participant")
        return str(self.study_dir(study_id) / "interviews" / f"{name}-interview.md")

    def collect_artifacts(self, study_id: str) -> List[Dict[str, str]]:
        """Questions, summaries and interviews of a study as ``{"name", "path", "content"}``."""
        self.get_study(study_id)
        paths = self.artifact_paths(study_id)
        candidates = [paths["questions"]]
        candidates.extend(self.storage.list_files(paths["summaries"], ".md"))
        candidates.extend(self.storage.list_files(paths["interviews"], ".md"))

        artifacts = []
        for path in candidates:
            if not self.storage.path_exists(path):
                continue
            artifacts.append({
                "name": self.storage.basename(path, ".md"),
                "path": path,
                "content": self.storage.read_file(path),
            })
        return artifacts


def _checked_identifier(value: str, kind: str) -> str:
    if not value or not SAFE_IDENTIFIER.match(value) or ".." in value:
        raise ValueError(f"Invalid {kind} id: {value!r}")
    return value


def _slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
