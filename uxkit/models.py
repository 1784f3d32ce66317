"""Data models for UX-Kit research workflows.

This module contains the core data structures used throughout UX-Kit:
validation results, studies, research sources, generation results and the
ordered research workflow steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string with a ``Z`` suffix."""
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def utc_date() -> str:
    """Current UTC date as ``YYYY-MM-DD``."""
    return datetime.now(timezone.utc).date().isoformat()


@dataclass(slots=True)
class ValidationResult:
    """Outcome of a template validation."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Combine two results, keeping error order."""
        return ValidationResult.from_errors(self.errors + other.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"isValid": self.is_valid, "errors": list(self.errors)}


@dataclass(slots=True)
class StudyMetadata:
    """A research study stored under ``.uxkit/studies/<id>``."""

    study_id: str
    name: str
    base_path: str
    description: str = ""
    status: str = "draft"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.study_id,
            "name": self.name,
            "description": self.description,
            "basePath": self.base_path,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def validate(self) -> List[str]:
        """Validate the study and return any issues."""
        issues = []
        if not self.study_id:
            issues.append("Study ID is required")
        if not self.name:
            issues.append("Study name is required")
        if self.status not in STUDY_STATUSES:
            issues.append(f"Invalid status: {self.status}")
        return issues


STUDY_STATUSES = ("draft", "active", "completed", "archived")
SOURCE_TYPES = ("web", "file", "document", "interview", "survey", "other")


@dataclass(slots=True)
class Source:
    """A research source collected for a study."""

    source_id: str
    title: str
    source_type: str = "web"
    url: Optional[str] = None
    file_path: Optional[str] = None
    date_added: str = field(default_factory=utc_date)
    tags: List[str] = field(default_factory=list)
    summary_status: str = "not_summarized"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.source_id,
            "title": self.title,
            "type": self.source_type,
            "url": self.url,
            "filePath": self.file_path,
            "dateAdded": self.date_added,
            "tags": list(self.tags),
            "summaryStatus": self.summary_status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Source":
        """Create from dictionary representation."""
        return cls(
            source_id=data["id"],
            title=data.get("title") or data["id"],
            source_type=(data.get("type") or "web").lower(),
            url=data.get("url"),
            file_path=data.get("filePath"),
            date_added=data.get("dateAdded") or utc_date(),
            tags=list(data.get("tags") or []),
            summary_status=data.get("summaryStatus") or "not_summarized",
        )

    def template_bindings(self) -> Dict[str, Any]:
        """Bindings for the sources template; tags are pre-joined for display."""
        bindings = self.to_dict()
        bindings["type"] = self.source_type.capitalize()
        bindings["tags"] = ", ".join(self.tags)
        bindings["summaryStatus"] = self.summary_status.replace("_", " ").title()
        return bindings

    def validate(self) -> List[str]:
        """Validate the source and return any issues."""
        issues = []
        if not self.source_id:
            issues.append("Source ID is required")
        if not self.title:
            issues.append("Source title is required")
        if self.source_type not in SOURCE_TYPES:
            issues.append(f"Invalid source type: {self.source_type}")
        return issues


@dataclass(slots=True)
class GenerationResult:
    """Result of writing a generated artifact."""

    success: bool
    file_path: str = ""
    message: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data: Dict[str, Any] = {
            "success": self.success,
            "filePath": self.file_path,
            "message": self.message,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(slots=True)
class WorkflowStep:
    """Represents a single step in the research workflow."""

    step_number: int
    name: str
    tool_name: str
    description: str
    purpose: str
    prerequisites: List[str] = field(default_factory=list)
    expected_output: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "step_number": self.step_number,
            "name": self.name,
            "tool_name": self.tool_name,
            "description": self.description,
            "purpose": self.purpose,
            "prerequisites": list(self.prerequisites),
            "expected_output": self.expected_output,
        }

    def can_execute(self, completed_steps: List[str]) -> bool:
        """Check if this step can be executed based on prerequisites."""
        return all(prereq in completed_steps for prereq in self.prerequisites)


RESEARCH_STEPS = [
    WorkflowStep(
        step_number=1,
        name="Project Initialization",
        tool_name="init_project",
        description="Create the .uxkit/ directory, configuration and templates",
        purpose="Prepare the project for template-driven research",
        expected_output=".uxkit/config.yaml, .uxkit/memory/principles.md, .uxkit/templates/*.md",
    ),
    WorkflowStep(
        step_number=2,
        name="Study Creation",
        tool_name="create_study",
        description="Create a numbered study with its configuration and starter artifacts",
        purpose="Give each research effort its own folder of artifacts",
        prerequisites=["Project Initialization"],
        expected_output=".uxkit/studies/{study_id}/study-config.yaml",
    ),
    WorkflowStep(
        step_number=3,
        name="Research Questions",
        tool_name="generate_questions",
        description="Derive research questions from a prompt",
        purpose="Frame what the study needs to learn",
        prerequisites=["Study Creation"],
        expected_output=".uxkit/studies/{study_id}/questions.md",
    ),
    WorkflowStep(
        step_number=4,
        name="Source Collection",
        tool_name="collect_sources",
        description="Record research sources, optionally discovering project files",
        purpose="Keep an inventory of material to review",
        prerequisites=["Study Creation"],
        expected_output=".uxkit/studies/{study_id}/sources.md",
    ),
    WorkflowStep(
        step_number=5,
        name="Source Summaries",
        tool_name="summarize_source",
        description="Summarize a collected source",
        purpose="Capture key takeaways per source",
        prerequisites=["Source Collection"],
        expected_output=".uxkit/studies/{study_id}/summaries/{source_id}-summary.md",
    ),
    WorkflowStep(
        step_number=6,
        name="Interview Processing",
        tool_name="process_interview",
        description="Format an interview transcript and extract themes",
        purpose="Turn raw transcripts into reviewable artifacts",
        prerequisites=["Study Creation"],
        expected_output=".uxkit/studies/{study_id}/interviews/{participant_id}-interview.md",
    ),
    WorkflowStep(
        step_number=7,
        name="Insight Synthesis",
        tool_name="synthesize_insights",
        description="Synthesize findings across all study artifacts",
        purpose="Produce findings, recommendations and next steps",
        prerequisites=["Research Questions"],
        expected_output=".uxkit/studies/{study_id}/insights.md",
    ),
]
