"""Unit tests for UX-Kit data models.

This module tests the dataclasses used by the workflow and their
dictionary conversions.
"""

import re

from uxkit.models import (
    RESEARCH_STEPS,
    GenerationResult,
    Source,
    StudyMetadata,
    ValidationResult,
    WorkflowStep,
    utc_date,
    utc_timestamp,
)


class TestValidationResult:
    """Test cases for ValidationResult."""

    def test_from_errors(self):
        """Test that validity follows the error list."""
        assert ValidationResult.from_errors([]).is_valid
        assert not ValidationResult.from_errors(["bad"]).is_valid

    def test_merge_keeps_order(self):
        """Test merging two results."""
        merged = ValidationResult.from_errors(["a"]).merge(ValidationResult.from_errors(["b"]))
        assert merged.errors == ["a", "b"]
        assert not merged.is_valid


class TestStudyMetadata:
    """Test cases for StudyMetadata."""

    def test_to_dict(self):
        """Test dictionary conversion."""
        study = StudyMetadata(
            study_id="001-onboarding",
            name="Onboarding",
            base_path="/p/.uxkit/studies/001-onboarding",
            created_at="2024-01-01T00:00:00Z",
        )
        data = study.to_dict()
        assert data["id"] == "001-onboarding"
        assert data["basePath"].endswith("001-onboarding")
        assert data["status"] == "draft"
        assert data["createdAt"] == "2024-01-01T00:00:00Z"

    def test_validate(self):
        """Test study validation."""
        assert StudyMetadata("001-a", "A", "/p").validate() == []
        issues = StudyMetadata("", "", "/p", status="unknown").validate()
        assert issues == ["Study ID is required", "Study name is required", "Invalid status: unknown"]


class TestSource:
    """Test cases for Source."""

    def test_round_trip(self):
        """Test conversion to and from dictionaries."""
        source = Source("s1", "Report", source_type="document", tags=["ux", "mobile"])
        restored = Source.from_dict(source.to_dict())
        assert restored == source

    def test_from_dict_defaults(self):
        """Test defaults for sparse input."""
        source = Source.from_dict({"id": "s2", "type": "FILE"})
        assert source.title == "s2"
        assert source.source_type == "file"
        assert source.summary_status == "not_summarized"
        assert re.match(r"\d{4}-\d{2}-\d{2}$", source.date_added)

    def test_template_bindings(self):
        """Test the display-ready bindings."""
        source = Source("s1", "Report", source_type="web", url="https://example.com", tags=["a", "b"])
        bindings = source.template_bindings()
        assert bindings["type"] == "Web"
        assert bindings["tags"] == "a, b"
        assert bindings["summaryStatus"] == "Not Summarized"
        assert bindings["url"] == "https://example.com"
        assert bindings["filePath"] is None

    def test_validate(self):
        """Test source validation."""
        assert Source("s1", "T").validate() == []
        assert Source("s1", "T", source_type="podcast").validate() == ["Invalid source type: podcast"]


class TestGenerationResult:
    """Test cases for GenerationResult."""

    def test_success_has_no_error_key(self):
        """Test that successful results omit the error key."""
        data = GenerationResult(True, "/out.md", "ok").to_dict()
        assert data == {"success": True, "filePath": "/out.md", "message": "ok"}

    def test_failure_includes_error(self):
        """Test that failures carry the error."""
        data = GenerationResult(False, message="Template not found", error="Template not found").to_dict()
        assert data["error"] == "Template not found"


class TestWorkflowSteps:
    """Test cases for WorkflowStep and RESEARCH_STEPS."""

    def test_steps_are_ordered(self):
        """Test the order of the research workflow."""
        assert [step.tool_name for step in RESEARCH_STEPS] == [
            "init_project",
            "create_study",
            "generate_questions",
            "collect_sources",
            "summarize_source",
            "process_interview",
            "synthesize_insights",
        ]
        assert [step.step_number for step in RESEARCH_STEPS] == list(range(1, 8))

    def test_can_execute(self):
        """Test prerequisite checks."""
        step = WorkflowStep(2, "Study Creation", "create_study", "d", "p", prerequisites=["Project Initialization"])
        assert not step.can_execute([])
        assert step.can_execute(["Project Initialization"])

    def test_prerequisites_refer_to_earlier_steps(self):
        """Test that each prerequisite names an earlier step."""
        seen = []
        for step in RESEARCH_STEPS:
            assert all(prereq in seen for prereq in step.prerequisites)
            seen.append(step.name)


class TestTimestamps:
    """Test cases for time helpers."""

    def test_formats(self):
        """Test the timestamp formats."""
        assert re.match(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$", utc_timestamp())
        assert re.match(r"\d{4}-\d{2}-\d{2}$", utc_date())
