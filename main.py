"""MCP server exposing the UX-Kit research workflow tools."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.resources import TextResource

from uxkit.config import LOG_LEVEL_ENV, PROJECT_ROOT_ENV
from uxkit.uxkit_logging import setup_logging
from uxkit.workflow import ResearchWorkflow

mcp = FastMCP("ux-kit")

PROJECT_MARKER_DIRECTORY = ".uxkit"


def _candidate_bases() -> List[Path]:
    cwd = Path.cwd().resolve()
    return [cwd, *cwd.parents]


def _locate_project_root() -> Optional[Path]:
    for base in _candidate_bases():
        if (base / PROJECT_MARKER_DIRECTORY).is_dir():
            return base
    return None


def _resolve_root(root: Optional[str], *, allow_cwd: bool = False) -> Path:
    if root:
        resolved = Path(root).expanduser().resolve()
        if not resolved.exists():
            raise ValueError(f"Provided root '{root}' does not exist.")
        return resolved

    env_root = os.getenv(PROJECT_ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise ValueError(
                f"Environment variable {PROJECT_ROOT_ENV} points to '{env_root}', which does not exist."
            )
        return env_path

    detected_root = _locate_project_root()
    if detected_root:
        return detected_root

    if allow_cwd:
        return Path.cwd().resolve()

    raise ValueError(
        "Unable to determine project root automatically. Provide the 'root' argument when calling the tool "
        f"or set the {PROJECT_ROOT_ENV} environment variable."
    )


def _workflow(root: Optional[str], *, allow_cwd: bool = False) -> ResearchWorkflow:
    return ResearchWorkflow(_resolve_root(root, allow_cwd=allow_cwd))


@mcp.tool()
def init_project(ai_agent: str = "cursor", overwrite: bool = False, root: Optional[str] = None) -> Dict[str, Any]:
    """STEP 1: Initialize UX-Kit in the project.
    Creates .uxkit/ with config.yaml, memory/principles.md and the research templates.
    ai_agent is one of cursor, codex or custom."""

    return _workflow(root, allow_cwd=True).init_project(ai_agent=ai_agent, overwrite=overwrite)


@mcp.tool()
def create_study(name: str, description: str = "", root: Optional[str] = None) -> Dict[str, Any]:
    """STEP 2: Create a numbered research study (e.g. 001-checkout-friction)."""

    return _workflow(root).create_study(name, description)


@mcp.tool()
def list_studies(root: Optional[str] = None) -> Dict[str, Any]:
    """Enumerate the studies of the project."""

    return _workflow(root).list_studies()


@mcp.tool()
def get_study(study_id: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Show a study's metadata, sources and which artifacts exist."""

    return _workflow(root).get_study(study_id)


@mcp.tool()
def delete_study(study_id: str, root: Optional[str] = None) -> Dict[str, Any]:
    """Delete a study and all of its artifacts."""

    return _workflow(root).delete_study(study_id)


@mcp.resource("uxkit://studies")
def resource_studies():
    """Resource view exposing the project's studies for discovery."""

    try:
        workflow = _workflow(None)
    except ValueError:
        return TextResource(
            f"No project root detected. Launch tools with a 'root' argument or set {PROJECT_ROOT_ENV}."
        )

    studies = workflow.list_studies()["studies"]
    if not studies:
        return TextResource("No studies have been created yet.")

    lines = ["UX-Kit Studies"]
    for study in studies:
        lines.append("")
        lines.append(f"- {study['id']}: {study['name']} ({study['status']})")
        if study.get("description"):
            lines.append(f"  {study['description']}")
        lines.append(f"  Path: {study['basePath']}")

    return TextResource("\n".join(lines))


@mcp.tool()
def generate_questions(study_id: str, prompt: str, root: Optional[str] = None) -> Dict[str, Any]:
    """STEP 3: Generate research questions for a study from a research prompt."""

    return _workflow(root).generate_questions(study_id, prompt)


@mcp.tool()
def collect_sources(
    study_id: str,
    sources: Optional[List[Dict[str, Any]]] = None,
    auto_discover: bool = False,
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 4: Record research sources and regenerate sources.md.
    Each source has a title and optionally id, type, url, filePath and tags.
    With auto_discover, documents found in the project are recorded too and can be
    passed to summarize_source by their id."""

    return _workflow(root).collect_sources(study_id, sources=sources, auto_discover=auto_discover)


@mcp.tool()
def summarize_source(
    study_id: str,
    source_id: str,
    content: Optional[str] = None,
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 5: Summarize a collected source. Without content, the source's file is read."""

    return _workflow(root).summarize_source(study_id, source_id, content=content)


@mcp.tool()
def process_interview(
    study_id: str,
    participant_id: str,
    transcript: str,
    interviewer_name: str = "Research Team",
    notes: str = "",
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 6: Format an interview transcript and extract its key themes."""

    return _workflow(root).process_interview(
        study_id,
        participant_id,
        transcript,
        interviewer_name=interviewer_name,
        notes=notes,
    )


@mcp.tool()
def synthesize_insights(study_id: str, root: Optional[str] = None) -> Dict[str, Any]:
    """STEP 7: Synthesize findings, recommendations and next steps from the study's artifacts."""

    return _workflow(root).synthesize_insights(study_id)


@mcp.tool()
def render_template(
    template: str,
    variables: Optional[Dict[str, Any]] = None,
    partials: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Render a template string with the UX-Kit template language."""

    return ResearchWorkflow(Path.cwd()).render_template(template, variables, partials)


@mcp.tool()
def validate_template(
    template: str,
    variables: Optional[Dict[str, Any]] = None,
    check_content: bool = False,
) -> Dict[str, Any]:
    """Check a template for syntax problems, and optionally missing variables and content issues."""

    return ResearchWorkflow(Path.cwd()).validate_template(template, variables, check_content)


@mcp.tool()
def get_workflow_guide() -> Dict[str, Any]:
    """Get guidance on the recommended UX research workflow."""

    return ResearchWorkflow(Path.cwd()).get_workflow_guide()


if __name__ == "__main__":
    setup_logging(os.getenv(LOG_LEVEL_ENV, "INFO").upper())
    mcp.run(transport="stdio")
