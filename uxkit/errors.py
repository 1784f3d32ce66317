"""Exception types raised by UX-Kit services.

Core services raise these; the workflow layer catches them and turns them
into error payloads for the MCP tools.
"""

from __future__ import annotations

from typing import Optional


class UXKitError(Exception):
    """Base class for all UX-Kit errors."""


class TemplateRenderError(UXKitError):
    """Raised when a template is structurally broken and cannot be rendered."""

    def __init__(self, message: str = "Template rendering failed", *, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class TemplateNotFoundError(UXKitError):
    """Raised when a template file cannot be loaded."""

    def __init__(self, path: Optional[str] = None):
        super().__init__("Template not found")
        self.path = path


class StorageError(UXKitError):
    """Raised when the file system collaborator fails."""


class StudyNotFoundError(UXKitError):
    """Raised when a study id does not exist in the workspace."""

    def __init__(self, study_id: str):
        super().__init__(f"Study not found: {study_id}")
        self.study_id = study_id


class ConfigurationError(UXKitError):
    """Raised when a configuration file cannot be read or is invalid."""
