"""Workflow orchestration for UX-Kit.

:class:`ResearchWorkflow` is the surface the MCP tools call. Every
operation returns a plain dictionary; failures are reported in the
dictionary (``error``, ``suggestion``, ``next_suggested_step``) instead of
being raised, so an agent always gets actionable guidance back.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import StudyNotFoundError, TemplateRenderError, UXKitError
from .generator import FileGenerator
from .models import RESEARCH_STEPS, GenerationResult, Source
from .renderer import TemplateEngine
from .uxkit_logging import (
    log_error_with_context,
    log_operation,
    log_performance,
    observability_hooks,
)
from .validator import TemplateValidator, extract_variables
from .workspace import Workspace

logger = logging.getLogger("uxkit.workflow")


class ResearchWorkflow:
    """Runs the UX research workflow against one project root."""

    def __init__(self, root: Path | str):
        self.workspace = Workspace(root)
        self.engine = TemplateEngine()
        self.validator = TemplateValidator()

    def _generator(self) -> FileGenerator:
        return FileGenerator(
            self.workspace.storage,
            engine=self.engine,
            validator=self.validator,
            ai_agent_name=self.workspace.ai_agent_name(),
        )

    def _failure(
        self,
        operation: str,
        error: Exception,
        suggestion: str,
        next_step: str,
        **context: Any,
    ) -> Dict[str, Any]:
        log_error_with_context(error, {"operation": operation, **context})
        return {
            "error": str(error),
            "suggestion": suggestion,
            "next_suggested_step": next_step,
            "message": f"Error: {error}",
        }

    def _generation_response(
        self,
        result: GenerationResult,
        study_id: str,
        next_step: str,
        workflow_tip: str,
    ) -> Dict[str, Any]:
        response = result.to_dict()
        response["study_id"] = study_id
        if result.success:
            self.workspace.touch_study(study_id)
            response["next_suggested_step"] = next_step
            response["workflow_tip"] = workflow_tip
        else:
            response["suggestion"] = "Check the template in .uxkit/templates/ with validate_template"
            response["next_suggested_step"] = "validate_template"
        return response

    # ------------------------------------------------------------------
    # Project and studies
    # ------------------------------------------------------------------

    @log_performance("init_project")
    def init_project(self, ai_agent: str = "cursor", overwrite: bool = False) -> Dict[str, Any]:
        """Initialize ``.uxkit/`` in the project root."""
        try:
            result = self.workspace.initialize(ai_agent, overwrite=overwrite)
            message = (
                f"UX-Kit already initialized at {result['root']}"
                if result["already_initialized"]
                else f"UX-Kit initialized at {result['root']}"
            )
            return {
                **result,
                "next_suggested_step": "create_study",
                "workflow_tip": "Next: create a study for your research question with create_study",
                "message": message,
            }
        except Exception as e:
            return self._failure(
                "init_project",
                e,
                "Check that the project root exists and is writable",
                "init_project",
                root=str(self.workspace.root),
            )

    @log_performance("create_study")
    def create_study(self, name: str, description: str = "") -> Dict[str, Any]:
        try:
            if not self.workspace.is_initialized():
                raise UXKitError("Project is not initialized")
            study = self.workspace.create_study(name, description)
            return {
                "study": study.to_dict(),
                "study_id": study.study_id,
                "next_suggested_step": "generate_questions",
                "workflow_tip": "Next: frame the study with generate_questions",
                "message": f"Study '{study.name}' created as {study.study_id}",
            }
        except UXKitError as e:
            return self._failure("create_study", e, "Run init_project first", "init_project", name=name)
        except Exception as e:
            return self._failure(
                "create_study", e, "Provide a non-empty study name", "create_study", name=name
            )

    def list_studies(self) -> Dict[str, Any]:
        studies = [study.to_dict() for study in self.workspace.list_studies()]
        return {
            "studies": studies,
            "count": len(studies),
            "message": f"Found {len(studies)} studies" if studies else "No studies yet",
        }

    def get_study(self, study_id: str) -> Dict[str, Any]:
        try:
            study = self.workspace.get_study(study_id)
            artifacts = {
                name: Path(path).exists() for name, path in self.workspace.artifact_paths(study_id).items()
            }
            return {
                "study": study.to_dict(),
                "artifacts": artifacts,
                "sources": [source.to_dict() for source in self.workspace.load_sources(study_id)],
                "message": f"Study {study_id} found",
            }
        except Exception as e:
            return self._failure("get_study", e, "Use list_studies to see available studies", "list_studies")

    def delete_study(self, study_id: str) -> Dict[str, Any]:
        try:
            self.workspace.delete_study(study_id)
            return {"study_id": study_id, "deleted": True, "message": f"Study {study_id} deleted"}
        except Exception as e:
            return self._failure("delete_study", e, "Use list_studies to see available studies", "list_studies")

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    @log_performance("generate_questions")
    def generate_questions(self, study_id: str, prompt: str) -> Dict[str, Any]:
        try:
            if not prompt or not prompt.strip():
                raise ValueError("Research prompt cannot be empty")
            study = self.workspace.get_study(study_id)
            with log_operation("generate_questions", study_id=study_id):
                result = self._generator().generate_questions(
                    study.study_id,
                    study.name,
                    prompt,
                    self.workspace.artifact_paths(study_id)["questions"],
                    self.workspace.template_path("questions"),
                )
            return self._generation_response(
                result, study_id, "collect_sources", "Next: record the material you will review with collect_sources"
            )
        except StudyNotFoundError as e:
            return self._failure("generate_questions", e, "Create the study first", "create_study")
        except Exception as e:
            return self._failure(
                "generate_questions", e, "Describe what you want to learn", "generate_questions", study_id=study_id
            )

    @log_performance("collect_sources")
    def collect_sources(
        self,
        study_id: str,
        sources: Optional[List[Dict[str, Any]]] = None,
        auto_discover: bool = False,
    ) -> Dict[str, Any]:
        """Record sources for a study and regenerate ``sources.md``.

        Each source is a mapping with at least ``title``; ``id`` defaults to
        a generated ``source-<hex>`` value. Discovered files are added to the
        index under an id derived from their path, so they can be summarized.
        """
        try:
            study = self.workspace.get_study(study_id)
            new_sources = []
            for item in sources or []:
                data = dict(item)
                data.setdefault("id", f"source-{uuid.uuid4().hex[:8]}")
                source = Source.from_dict(data)
                issues = source.validate()
                if issues:
                    raise ValueError("; ".join(issues))
                new_sources.append(source)

            with log_operation("collect_sources", study_id=study_id, count=len(new_sources)):
                generator = self._generator()
                discovered = generator.auto_discover_sources(str(self.workspace.root)) if auto_discover else []

                # Rediscovered files keep their indexed entry.
                supplied = {source.source_id for source in new_sources}
                skip = supplied | {source.source_id for source in self.workspace.load_sources(study_id)}
                discovered = [source for source in discovered if source.source_id not in supplied]
                discovered_ids = {source.source_id for source in discovered}
                indexed = new_sources + [source for source in discovered if source.source_id not in skip]
                collected = self.workspace.add_sources(study_id, indexed)

                result = generator.generate_sources(
                    study.study_id,
                    study.name,
                    [source for source in collected if source.source_id not in discovered_ids],
                    self.workspace.artifact_paths(study_id)["sources"],
                    self.workspace.template_path("sources"),
                    discovered=discovered,
                )

            response = self._generation_response(
                result, study_id, "summarize_source", "Next: summarize each source with summarize_source"
            )
            response["sources"] = [source.to_dict() for source in collected]
            response["discovered"] = [source.to_dict() for source in discovered]
            return response
        except StudyNotFoundError as e:
            return self._failure("collect_sources", e, "Create the study first", "create_study")
        except Exception as e:
            return self._failure(
                "collect_sources",
                e,
                "Each source needs a title and a type of web, file, document, interview, survey or other",
                "collect_sources",
                study_id=study_id,
            )

    @log_performance("summarize_source")
    def summarize_source(self, study_id: str, source_id: str, content: Optional[str] = None) -> Dict[str, Any]:
        """Summarize a collected source.

        Without ``content`` the source's ``filePath`` is read.
        """
        try:
            self.workspace.get_study(study_id)
            source = self.workspace.get_source(study_id, source_id)
            if source is None:
                raise UXKitError(f"Source not found: {source_id}")
            if content is None:
                if not source.file_path:
                    raise UXKitError(f"Source {source_id} has no file to read; pass its content")
                content = self.workspace.storage.read_file(source.file_path)

            with log_operation("summarize_source", study_id=study_id, source_id=source_id):
                result = self._generator().generate_summary(
                    study_id,
                    source,
                    content,
                    self.workspace.summary_path(study_id, source_id),
                    self.workspace.template_path("summarize"),
                )
            if result.success:
                self.workspace.mark_source_summarized(study_id, source_id)
            return self._generation_response(
                result, study_id, "process_interview", "Next: add interview transcripts with process_interview"
            )
        except StudyNotFoundError as e:
            return self._failure("summarize_source", e, "Create the study first", "create_study")
        except Exception as e:
            return self._failure(
                "summarize_source",
                e,
                "Record the source with collect_sources first",
                "collect_sources",
                study_id=study_id,
                source_id=source_id,
            )

    @log_performance("process_interview")
    def process_interview(
        self,
        study_id: str,
        participant_id: str,
        transcript: str,
        interviewer_name: str = "Research Team",
        notes: str = "",
    ) -> Dict[str, Any]:
        try:
            if not participant_id or not participant_id.strip():
                raise ValueError("Participant id cannot be empty")
            if not transcript or not transcript.strip():
                raise ValueError("Interview transcript cannot be empty")
            self.workspace.get_study(study_id)

            with log_operation("process_interview", study_id=study_id, participant_id=participant_id):
                result = self._generator().generate_interview(
                    study_id,
                    participant_id.strip(),
                    transcript,
                    self.workspace.interview_path(study_id, participant_id.strip()),
                    self.workspace.template_path("interview"),
                    interviewer_name=interviewer_name or "Research Team",
                    notes=notes,
                )
            return self._generation_response(
                result, study_id, "synthesize_insights", "Next: combine everything with synthesize_insights"
            )
        except StudyNotFoundError as e:
            return self._failure("process_interview", e, "Create the study first", "create_study")
        except Exception as e:
            return self._failure(
                "process_interview",
                e,
                "Provide a participant id and a transcript",
                "process_interview",
                study_id=study_id,
            )

    @log_performance("synthesize_insights")
    def synthesize_insights(self, study_id: str) -> Dict[str, Any]:
        try:
            study = self.workspace.get_study(study_id)
            artifacts = self.workspace.collect_artifacts(study_id)
            with log_operation("synthesize_insights", study_id=study_id, artifacts=len(artifacts)):
                result = self._generator().generate_insights(
                    study.study_id,
                    study.name,
                    artifacts,
                    self.workspace.artifact_paths(study_id)["insights"],
                    self.workspace.template_path("synthesize"),
                )
            response = self._generation_response(
                result, study_id, "get_study", "Review insights.md and share it with your team"
            )
            response["artifacts_analyzed"] = [artifact["name"] for artifact in artifacts]
            if result.success:
                observability_hooks.log_workflow_event("study_synthesized", study_id=study_id)
            return response
        except StudyNotFoundError as e:
            return self._failure("synthesize_insights", e, "Create the study first", "create_study")
        except Exception as e:
            return self._failure(
                "synthesize_insights", e, "Generate questions or summaries first", "generate_questions"
            )

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def render_template(
        self,
        template: str,
        variables: Optional[Dict[str, Any]] = None,
        partials: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Render an ad-hoc template string."""
        try:
            if partials:
                content = self.engine.render_with_partials(template, partials, variables)
            else:
                content = self.engine.render(template, variables)
            return {"content": content, "message": "Template rendered successfully"}
        except TemplateRenderError as e:
            response = self._failure(
                "render_template", e, "Run validate_template to locate the problem", "validate_template"
            )
            response["validation"] = self.validator.validate(template).to_dict()
            return response

    def validate_template(
        self,
        template: str,
        variables: Optional[Dict[str, Any]] = None,
        check_content: bool = False,
    ) -> Dict[str, Any]:
        """Validate syntax, and optionally variables and content."""
        result = self.validator.validate_all(template, variables)
        if check_content:
            result = result.merge(self.validator.validate_content(template))
        return {
            **result.to_dict(),
            "variables": extract_variables(template),
            "message": "Template is valid" if result.is_valid else f"Found {len(result.errors)} problems",
        }

    def get_workflow_guide(self) -> Dict[str, Any]:
        """Get workflow guidance for a research study."""
        return {
            "workflow_overview": "UX research workflow in recommended order",
            "steps": [
                {
                    "step": step.step_number,
                    "tool": step.tool_name,
                    "description": step.description,
                    "purpose": step.purpose,
                    "expected_output": step.expected_output,
                }
                for step in RESEARCH_STEPS
            ],
            "tips": [
                "Edit the templates in .uxkit/templates/ to change the shape of every artifact",
                "Use validate_template after editing a template",
                "Summaries and interviews feed synthesize_insights, so add them first",
            ],
        }
