"""Markdown templates shipped with UX-Kit and the services that manage them.

The default research templates are copied into ``.uxkit/templates/`` when a
project is initialized; users may edit them there. The study starter
templates seed a new study's folder.
"""

from __future__ import annotations

import logging
import textwrap
from typing import Dict, List, Optional

from .errors import StorageError, TemplateNotFoundError, UXKitError
from .storage import FileSystemService

logger = logging.getLogger("uxkit.templates")


QUESTIONS_TEMPLATE = textwrap.dedent(
    """\
    # Research Questions for Study: {{studyName}}

    **Study ID**: {{studyId}}
    **Date**: {{generationDate}}
    **AI Agent**: {{aiAgentName}}

    ## Core Questions
    {{#each questions}}
    - **Q{{this.number}}**: {{this.question}}
      - **Priority**: {{this.priority}}
      - **Category**: {{this.category}}
      - **Status**: {{this.status}}
      - **Context**: {{this.context}}
    {{/each}}

    ## Sub-Questions
    {{#if subQuestions}}{{#each subQuestions}}
    - {{this}}
    {{/each}}{{else}}
    *Additional questions will be added as research progresses*
    {{/if}}

    ## AI Generated Prompts
    {{#each prompts}}
    - {{this}}
    {{/each}}
    """
)

SOURCES_TEMPLATE = textwrap.dedent(
    """\
    # Research Sources for Study: {{studyName}}

    **Study ID**: {{studyId}}
    **Date**: {{generationDate}}

    ## Collected Sources
    {{#each sources}}
    - **Source ID**: {{this.id}}
      - **Title**: {{this.title}}
      - **Type**: {{this.type}}
    {{#if this.url}}  - **URL**: {{this.url}}
    {{/if}}{{#if this.filePath}}  - **File Path**: {{this.filePath}}
    {{/if}}  - **Date Added**: {{this.dateAdded}}
    {{#if this.tags}}  - **Tags**: {{this.tags}}
    {{/if}}  - **Summary Status**: {{this.summaryStatus}}
    {{/each}}

    ## Auto-Discovered Sources
    {{#if autoDiscovered}}{{#each autoDiscovered}}
    - **Source ID**: {{this.id}}
      - **Title**: {{this.title}}
      - **Type**: {{this.type}}
      - **File Path**: {{this.filePath}}
      - **Date Added**: {{this.dateAdded}}
    {{/each}}{{else}}
    *Sources discovered automatically in the project will be listed here*
    {{/if}}
    """
)

SUMMARIZE_TEMPLATE = textwrap.dedent(
    """\
    # Summary of: {{sourceTitle}}

    **Source ID**: {{sourceId}}
    **Study ID**: {{studyId}}
    **Date**: {{generationDate}}
    **AI Agent**: {{aiAgentName}}

    ## Key Takeaways
    {{#each keyTakeaways}}
    - {{this}}
    {{/each}}

    ## Detailed Summary
    {{detailedSummary}}

    ## Original Content Snippets
    {{#each originalSnippets}}
    > {{this}}
    {{/each}}
    """
)

INTERVIEW_TEMPLATE = textwrap.dedent(
    """\
    # Interview Transcript: {{participantId}}

    **Interview ID**: {{interviewId}}
    **Study ID**: {{studyId}}
    **Date**: {{interviewDate}}
    **Participant**: {{participantId}}
    **Interviewer**: {{interviewerName}}
    **AI Agent**: {{aiAgentName}}

    ## Key Themes
    {{#each keyThemes}}
    - {{this}}
    {{/each}}

    ## Formatted Transcript
    {{formattedTranscript}}

    ## Notes
    {{#if notes}}{{notes}}{{else}}*Additional notes and observations will be added here*{{/if}}
    """
)

SYNTHESIS_TEMPLATE = textwrap.dedent(
    """\
    # Synthesized Insights for Study: {{studyName}}

    **Study ID**: {{studyId}}
    **Date**: {{generationDate}}
    **AI Agent**: {{aiAgentName}}

    ## Key Findings
    {{#each keyFindings}}
    - **Finding {{this.number}}**: {{this.description}}
      - **Evidence**: {{this.evidence}}
      - **Implications**: {{this.implications}}
    {{/each}}

    ## Recommendations
    {{#each recommendations}}
    - {{this}}
    {{/each}}

    ## Next Steps
    {{#each nextSteps}}
    - {{this}}
    {{/each}}
    """
)

DEFAULT_TEMPLATES: Dict[str, str] = {
    "questions-template.md": QUESTIONS_TEMPLATE,
    "sources-template.md": SOURCES_TEMPLATE,
    "summarize-template.md": SUMMARIZE_TEMPLATE,
    "interview-template.md": INTERVIEW_TEMPLATE,
    "synthesis-template.md": SYNTHESIS_TEMPLATE,
}

# Starter files written into a freshly created study.
STUDY_STARTERS: Dict[str, str] = {
    "questions.md": textwrap.dedent(
        """\
        # Research Questions for Study: {{studyName}}

        **Study ID**: {{studyId}}
        **Date**: {{createdAt}}

        ## Core Questions
        <!-- Add your research questions here -->

        ## Sub-Questions
        <!-- Add sub-questions here -->

        ## AI Generated Prompts
        <!-- AI-generated prompts will appear here -->
        """
    ),
    "sources.md": textwrap.dedent(
        """\
        # Research Sources for Study: {{studyName}}

        **Study ID**: {{studyId}}
        **Date**: {{createdAt}}

        ## Collected Sources
        <!-- Add your research sources here -->

        ## Auto-Discovered Sources
        <!-- Auto-discovered sources will appear here -->
        """
    ),
    "insights.md": textwrap.dedent(
        """\
        # Synthesized Insights for Study: {{studyName}}

        **Study ID**: {{studyId}}
        **Date**: {{createdAt}}

        ## Key Findings
        <!-- Add your key findings here -->

        ## Recommendations
        <!-- Add recommendations here -->

        ## Next Steps
        <!-- Add next steps here -->
        """
    ),
}

PRINCIPLES = textwrap.dedent(
    """\
    # UX-Kit Principles

    ## Objective-Driven Research
    Research activities are guided by clear objectives and structured methodologies.

    ## File-Based Approach
    All research artifacts are stored as text files, easy to review, diff and version.

    ## Template-Driven Consistency
    Standardized templates keep research outputs consistent across studies.

    ## Lightweight Implementation
    Essential functionality only: no complex data models or inference engines.
    """
)


class TemplateManager:
    """Load, save and list template files through the storage service."""

    def __init__(self, storage: FileSystemService):
        self.storage = storage

    def load_template(self, template_path: str) -> str:
        try:
            return self.storage.read_file(template_path)
        except StorageError as e:
            raise TemplateNotFoundError(template_path) from e

    def save_template(self, template_path: str, content: str) -> None:
        self.storage.ensure_directory_exists(self.storage.dirname(template_path))
        self.storage.write_file(template_path, content)

    def list_templates(self, template_directory: str) -> List[str]:
        return self.storage.list_files(template_directory, ".md")

    def template_exists(self, template_path: str) -> bool:
        return self.storage.path_exists(template_path)

    def delete_template(self, template_path: str) -> None:
        if not self.template_exists(template_path):
            raise TemplateNotFoundError(template_path)
        try:
            self.storage.delete_file(template_path)
        except StorageError as e:
            raise UXKitError("Failed to delete template") from e

    def copy_template(self, source_path: str, destination_path: str) -> None:
        self.save_template(destination_path, self.load_template(source_path))


class TemplateService:
    """Install the default research templates into a project."""

    def __init__(self, storage: FileSystemService, manager: Optional[TemplateManager] = None):
        self.storage = storage
        self.manager = manager or TemplateManager(storage)

    def templates_dir(self, project_root: str) -> str:
        return self.storage.join_paths(project_root, ".uxkit", "templates")

    def copy_templates(self, project_root: str, *, overwrite: bool = False) -> List[str]:
        """Write the default templates; existing files are kept unless ``overwrite``.

        Returns the paths that were written.
        """
        directory = self.templates_dir(project_root)
        written = []
        for filename, content in DEFAULT_TEMPLATES.items():
            path = self.storage.join_paths(directory, filename)
            if self.manager.template_exists(path) and not overwrite:
                logger.debug(f"Keeping existing template {path}")
                continue
            self.manager.save_template(path, content)
            written.append(path)
        logger.info(f"Installed {len(written)} templates into {directory}")
        return written
