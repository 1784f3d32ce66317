"""Configuration for UX-Kit projects.

A project's settings live in ``.uxkit/config.yaml``. :class:`Configuration`
holds the nested sections, :func:`migrate` upgrades the flat ``0.9.0``
layout, and :class:`ConfigurationService` reads and writes the file with
PyYAML.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigurationError

logger = logging.getLogger("uxkit.config")

CONFIG_VERSION = "1.0.0"
SUPPORTED_VERSIONS = ("1.0.0", "0.9.0")
AI_AGENT_PROVIDERS = ("cursor", "codex", "custom")

PROJECT_ROOT_ENV = "UXKIT_PROJECT_ROOT"
LOG_LEVEL_ENV = "UXKIT_LOG_LEVEL"

DEFAULT_TEMPLATE_FILES = {
    "questions": "questions-template.md",
    "sources": "sources-template.md",
    "summarize": "summarize-template.md",
    "interview": "interview-template.md",
    "synthesize": "synthesis-template.md",
}


def _default_sections() -> Dict[str, Any]:
    return {
        "templates": {"directory": "./.uxkit/templates", "format": "markdown"},
        "output": {"directory": "./.uxkit/studies", "format": "markdown"},
        "research": {
            "defaultStudy": "default-study",
            "autoSave": True,
            "defaultTemplates": dict(DEFAULT_TEMPLATE_FILES),
        },
        "aiAgent": {"provider": "cursor", "settings": {}},
        "storage": {"basePath": "./.uxkit/studies", "format": "markdown"},
    }


@dataclass(slots=True)
class Configuration:
    """Project configuration with one dict per section."""

    version: str = CONFIG_VERSION
    templates: Dict[str, Any] = field(default_factory=lambda: _default_sections()["templates"])
    output: Dict[str, Any] = field(default_factory=lambda: _default_sections()["output"])
    research: Dict[str, Any] = field(default_factory=lambda: _default_sections()["research"])
    ai_agent: Dict[str, Any] = field(default_factory=lambda: _default_sections()["aiAgent"])
    storage: Dict[str, Any] = field(default_factory=lambda: _default_sections()["storage"])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk dictionary layout."""
        return {
            "version": self.version,
            "aiAgent": copy.deepcopy(self.ai_agent),
            "storage": copy.deepcopy(self.storage),
            "templates": copy.deepcopy(self.templates),
            "output": copy.deepcopy(self.output),
            "research": copy.deepcopy(self.research),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Configuration":
        """Create from the on-disk layout, filling gaps with defaults."""
        defaults = _default_sections()
        return cls(
            version=str(data.get("version", CONFIG_VERSION)),
            templates={**defaults["templates"], **(data.get("templates") or {})},
            output={**defaults["output"], **(data.get("output") or {})},
            research={**defaults["research"], **(data.get("research") or {})},
            ai_agent={**defaults["aiAgent"], **(data.get("aiAgent") or {})},
            storage={**defaults["storage"], **(data.get("storage") or {})},
        )

    def template_file(self, artifact: str) -> str:
        """File name of the template used for ``artifact`` (``questions``, ``sources``, ...)."""
        templates = self.research.get("defaultTemplates") or {}
        return templates.get(artifact) or DEFAULT_TEMPLATE_FILES[artifact]

    def validate(self) -> List[str]:
        """Validate the configuration and return any issues."""
        issues = []
        if not is_version_supported(self.version):
            issues.append(f"Unsupported configuration version: {self.version}")
        if self.ai_agent.get("provider") not in AI_AGENT_PROVIDERS:
            issues.append(f"AI agent must be one of: {', '.join(AI_AGENT_PROVIDERS)}")
        if not self.templates.get("directory"):
            issues.append("Template directory is required")
        if not isinstance(self.research.get("autoSave", True), bool):
            issues.append("research.autoSave must be a boolean")
        for artifact, filename in (self.research.get("defaultTemplates") or {}).items():
            if not str(filename).endswith(".md"):
                issues.append(f"Template for '{artifact}' must be a markdown file: {filename}")
        return issues


def default_configuration() -> Configuration:
    return Configuration()


def is_version_supported(version: str) -> bool:
    return version in SUPPORTED_VERSIONS


def migrate(data: Dict[str, Any]) -> Configuration:
    """Upgrade a raw configuration mapping to the current layout.

    ``0.9.0`` files used flat keys (``templateDir``, ``outputDir``, ...);
    anything else is merged over the defaults and stamped with the current
    version.
    """
    defaults = _default_sections()
    if data.get("version") == "0.9.0":
        return Configuration(
            version=CONFIG_VERSION,
            templates={
                "directory": data.get("templateDir") or defaults["templates"]["directory"],
                "format": data.get("templateFormat") or defaults["templates"]["format"],
            },
            output={
                "directory": data.get("outputDir") or defaults["output"]["directory"],
                "format": data.get("outputFormat") or defaults["output"]["format"],
            },
            research={
                **defaults["research"],
                "defaultStudy": data.get("defaultStudy") or defaults["research"]["defaultStudy"],
                "autoSave": data["autoSave"] if "autoSave" in data else defaults["research"]["autoSave"],
            },
        )

    migrated = Configuration.from_dict(data)
    migrated.version = CONFIG_VERSION
    return migrated


class ConfigurationService:
    """Load and persist ``.uxkit/config.yaml``."""

    def __init__(self, config_path: Path | str):
        self.config_path = Path(config_path)
        self._config: Optional[Configuration] = None

    @property
    def config(self) -> Configuration:
        if self._config is None:
            self._config = self.load()
        return self._config

    def exists(self) -> bool:
        return self.config_path.is_file()

    def load(self) -> Configuration:
        """Read the file, migrating older layouts. Missing files yield defaults."""
        if not self.exists():
            logger.debug(f"No configuration at {self.config_path}, using defaults")
            return default_configuration()

        try:
            with open(self.config_path, encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read configuration {self.config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration {self.config_path} must be a mapping")

        version = str(data.get("version", CONFIG_VERSION))
        if version != CONFIG_VERSION:
            logger.info(f"Migrating configuration from version {version}")
            config = migrate(data)
        else:
            config = Configuration.from_dict(data)
        self._config = config
        return config

    def save(self, config: Optional[Configuration] = None) -> Path:
        config = config or self.config
        issues = config.validate()
        if issues:
            raise ConfigurationError("; ".join(issues))

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as handle:
            yaml.dump(config.to_dict(), handle, default_flow_style=False, sort_keys=False)
        self._config = config
        logger.info(f"Configuration saved to {self.config_path}")
        return self.config_path

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup, e.g. ``get("aiAgent.provider")``."""
        current: Any = self.config.to_dict()
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def set(self, key: str, value: Any) -> Configuration:
        """Dotted assignment; returns the updated (unsaved) configuration."""
        data = self.config.to_dict()
        parts = key.split(".")
        current = data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value
        self._config = Configuration.from_dict(data)
        return self._config
