"""Research artifact generation.

:class:`FileGenerator` turns study data into markdown files: it assembles a
binding tree for each artifact, loads the matching template, checks its
syntax, renders it and writes the result. Content such as questions,
takeaways and themes is derived offline with simple text heuristics.
"""

from __future__ import annotations

import hashlib
import logging
import re
import uuid
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .errors import StorageError, TemplateNotFoundError, TemplateRenderError
from .models import GenerationResult, Source, utc_date
from .renderer import TemplateEngine
from .storage import FileSystemService
from .templates import TemplateManager
from .uxkit_logging import (
    log_artifact_generation,
    log_error_with_context,
    log_operation,
    log_performance,
    log_template_render,
)
from .validator import TemplateValidator

logger = logging.getLogger("uxkit.generator")

DISCOVERABLE_EXTENSIONS = (".md", ".txt", ".pdf", ".doc", ".docx")
IGNORED_DIRECTORIES = {".uxkit", ".git", "node_modules", "__pycache__", ".venv", "venv"}

_STOP_WORDS = frozenset(
    """
    about after again also been being before between both could does doing down during each from
    further have having here into just more most much must only other over same should some such
    than that their them then there these they this those through under until very were what when
    where which while will with would your yours yeah like know think really things thing going
    want well okay sure just lots because maybe actually pretty little kind sort said says
    study date agent cursor codex custom generated source sources summary interview questions
    research team participant transcript notes findings insights
    """.split()
)

_RESEARCH_HINTS = {
    "onboarding": "Which onboarding steps cause users to drop off?",
    "checkout": "Where in checkout do users hesitate or abandon?",
    "search": "How do users phrase searches when they cannot find what they need?",
    "mobile": "How does the mobile experience differ from desktop for the same task?",
    "navigation": "Which navigation paths do users expect but cannot find?",
    "accessibility": "Which accessibility barriers block users with assistive technology?",
    "pricing": "How do users interpret the pricing options presented to them?",
    "dashboard": "Which dashboard information do users act on, and which do they ignore?",
    "notifications": "Which notifications do users find helpful versus disruptive?",
    "performance": "At what point does slowness change user behaviour?",
    "trust": "What signals make users trust or distrust the product?",
}


class FileGenerator:
    """Render research artifacts from templates and write them to disk."""

    def __init__(
        self,
        storage: FileSystemService,
        engine: Optional[TemplateEngine] = None,
        validator: Optional[TemplateValidator] = None,
        ai_agent_name: str = "cursor",
    ):
        self.storage = storage
        self.engine = engine or TemplateEngine()
        self.validator = validator or TemplateValidator()
        self.templates = TemplateManager(storage)
        self.ai_agent_name = ai_agent_name

    # ------------------------------------------------------------------
    # Template pipeline
    # ------------------------------------------------------------------

    @log_performance("generate_from_template")
    def generate_from_template(self, output_path: str, template_path: str, data: Dict[str, Any]) -> GenerationResult:
        """Load, validate, render and write one artifact.

        Failures are reported in the returned :class:`GenerationResult`
        rather than raised.
        """
        template_name = self.storage.basename(template_path)
        try:
            template = self.templates.load_template(template_path)

            validation = self.validator.validate(template)
            if not validation.is_valid:
                log_template_render(template_name, False, errors=validation.errors)
                return GenerationResult(
                    success=False,
                    message="Template validation failed",
                    error="; ".join(validation.errors),
                )

            with log_operation("generate_from_template", template=template_name, output=output_path):
                content = self.engine.render(template, data)
                self.storage.ensure_directory_exists(self.storage.dirname(output_path))
                self.storage.write_file(output_path, content)
                log_template_render(template_name, True, output=output_path)

            return GenerationResult(success=True, file_path=output_path, message="Artifact generated successfully")

        except TemplateNotFoundError as e:
            logger.error(f"Template not found: {template_path}")
            return GenerationResult(success=False, message="Template not found", error=str(e))
        except TemplateRenderError as e:
            log_template_render(template_name, False, reason=e.reason)
            return GenerationResult(success=False, message="Template rendering failed", error=str(e))
        except StorageError as e:
            log_error_with_context(e, {"operation": "generate_from_template", "output": output_path})
            return GenerationResult(success=False, message="Failed to write artifact", error=str(e))

    def _generate(
        self,
        artifact_type: str,
        study_id: str,
        output_path: str,
        template_path: str,
        data: Dict[str, Any],
        success_message: str,
    ) -> GenerationResult:
        result = self.generate_from_template(output_path, template_path, data)
        if result.success:
            result.message = success_message
            log_artifact_generation(study_id, artifact_type, output_path)
        return result

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def generate_questions(
        self,
        study_id: str,
        study_name: str,
        prompt: str,
        output_path: str,
        template_path: str,
    ) -> GenerationResult:
        """Write ``questions.md`` with questions derived from ``prompt``."""
        data = {
            "studyName": study_name,
            "studyId": study_id,
            "generationDate": utc_date(),
            "aiAgentName": self.ai_agent_name,
            "questions": build_questions(prompt),
            "subQuestions": build_sub_questions(prompt),
            "prompts": [prompt.strip()] if prompt and prompt.strip() else [],
        }
        return self._generate(
            "questions", study_id, output_path, template_path, data, "Questions generated successfully"
        )

    def generate_sources(
        self,
        study_id: str,
        study_name: str,
        sources: Iterable[Source],
        output_path: str,
        template_path: str,
        discovered: Iterable[Source] = (),
    ) -> GenerationResult:
        """Write ``sources.md`` listing collected and auto-discovered sources."""
        data = {
            "studyName": study_name,
            "studyId": study_id,
            "generationDate": utc_date(),
            "sources": [source.template_bindings() for source in sources],
            "autoDiscovered": [source.template_bindings() for source in discovered],
        }
        return self._generate(
            "sources", study_id, output_path, template_path, data, "Sources collected successfully"
        )

    def generate_summary(
        self,
        study_id: str,
        source: Source,
        source_content: str,
        output_path: str,
        template_path: str,
    ) -> GenerationResult:
        """Write ``summaries/<source>-summary.md`` for one source."""
        sentences = split_sentences(source_content)
        data = {
            "sourceTitle": source.title,
            "sourceId": source.source_id,
            "studyId": study_id,
            "generationDate": utc_date(),
            "aiAgentName": self.ai_agent_name,
            "keyTakeaways": sentences[:3],
            "detailedSummary": " ".join(sentences[:6]) or "No readable content was found for this source.",
            "originalSnippets": select_snippets(sentences),
        }
        return self._generate(
            "summary", study_id, output_path, template_path, data, "Summary generated successfully"
        )

    def generate_interview(
        self,
        study_id: str,
        participant_id: str,
        transcript: str,
        output_path: str,
        template_path: str,
        interviewer_name: str = "Research Team",
        notes: str = "",
    ) -> GenerationResult:
        """Write ``interviews/<participant>-interview.md`` from a raw transcript."""
        data = {
            "participantId": participant_id,
            "interviewId": uuid.uuid4().hex[:8],
            "studyId": study_id,
            "interviewDate": utc_date(),
            "interviewerName": interviewer_name,
            "aiAgentName": self.ai_agent_name,
            "keyThemes": extract_themes(transcript),
            "formattedTranscript": format_transcript(transcript),
            "notes": notes,
        }
        return self._generate(
            "interview", study_id, output_path, template_path, data, "Interview processed successfully"
        )

    def generate_insights(
        self,
        study_id: str,
        study_name: str,
        artifacts: List[Dict[str, str]],
        output_path: str,
        template_path: str,
    ) -> GenerationResult:
        """Write ``insights.md`` synthesized from the study's other artifacts."""
        data = {
            "studyName": study_name,
            "studyId": study_id,
            "generationDate": utc_date(),
            "aiAgentName": self.ai_agent_name,
            **synthesize(artifacts),
        }
        return self._generate(
            "insights", study_id, output_path, template_path, data, "Insights synthesized successfully"
        )

    # ------------------------------------------------------------------
    # Source discovery
    # ------------------------------------------------------------------

    def auto_discover_sources(self, project_root: str) -> List[Source]:
        """Find documents in the project that could serve as research sources."""
        discovered: List[Source] = []
        pending = [project_root]
        while pending:
            directory = pending.pop()
            for path in self.storage.list_directories(directory):
                if self.storage.basename(path) not in IGNORED_DIRECTORIES:
                    pending.append(path)
            for path in self.storage.list_files(directory):
                extension = _extension(path)
                if extension not in DISCOVERABLE_EXTENSIONS:
                    continue
                name = self.storage.basename(path)
                discovered.append(Source(
                    source_id=_discovered_source_id(project_root, path),
                    title=name[: -len(extension)],
                    source_type="file",
                    file_path=path,
                ))
        discovered.sort(key=lambda source: source.file_path or "")
        logger.info(f"Discovered {len(discovered)} candidate sources under {project_root}")
        return discovered


# ----------------------------------------------------------------------
# Text heuristics
# ----------------------------------------------------------------------

def _discovered_source_id(project_root: str, path: str) -> str:
    """Stable ``file-<hex>`` id derived from the path relative to the project."""
    relative = Path(path).relative_to(project_root).as_posix()
    return f"file-{hashlib.sha1(relative.encode('utf-8')).hexdigest()[:8]}"


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    return name[dot:].lower() if dot > 0 else ""


def split_sentences(text: str) -> List[str]:
    """Split text into sentences, ignoring markdown headings and blank lines."""
    lines = [line.strip() for line in (text or "").splitlines()]
    prose = " ".join(line.lstrip("-*> ").strip() for line in lines if line and not line.startswith("#"))
    raw_sentences = re.split(r"(?<=[.!?])\s+", prose.strip())
    return [sentence.strip() for sentence in raw_sentences if sentence.strip()]


def keywords(text: str) -> List[str]:
    return [
        word
        for word in re.split(r"[^a-z0-9]+", (text or "").lower())
        if len(word) > 3 and word not in _STOP_WORDS and not word.isdigit()
    ]


def build_questions(prompt: str) -> List[Dict[str, Any]]:
    topic = (prompt or "").strip().rstrip(".?!") or "this study"
    templates = [
        ("What are the main user pain points related to: {topic}?", "High", "Pain Points"),
        ("How do users currently solve problems related to: {topic}?", "High", "Current Behaviour"),
        ("What would make the experience better for: {topic}?", "Medium", "Opportunities"),
        ("What are the key success metrics for: {topic}?", "Medium", "Success Metrics"),
    ]
    return [
        {
            "number": number,
            "question": question.format(topic=topic),
            "priority": priority,
            "category": category,
            "status": "Open",
            "context": "Generated from research prompt",
        }
        for number, (question, priority, category) in enumerate(templates, start=1)
    ]


def build_sub_questions(prompt: str) -> List[str]:
    lower = (prompt or "").lower()
    sub_questions = [hint for term, hint in _RESEARCH_HINTS.items() if term in lower]
    for word, _ in Counter(keywords(prompt)).most_common(3):
        if not any(word in hint.lower() for hint in sub_questions):
            sub_questions.append(f"How does '{word}' shape the user's experience?")
    return sub_questions


def select_snippets(sentences: List[str], limit: int = 3, max_length: int = 200) -> List[str]:
    """The longest sentences that still fit on one quoted line, in original order."""
    candidates = [s for s in sentences if len(s) <= max_length]
    chosen = set(sorted(candidates, key=len, reverse=True)[:limit])
    return [s for s in candidates if s in chosen][:limit]


def extract_themes(text: str, limit: int = 5) -> List[str]:
    counts = Counter(keywords(text))
    return [word.capitalize() for word, _ in counts.most_common(limit)]


_SPEAKER_LINE = re.compile(r"^(?P<speaker>[A-Za-z][\w .'-]{0,40}):\s*(?P<text>.+)$")


def format_transcript(transcript: str) -> str:
    """Bold speaker labels and separate turns with blank lines."""
    turns = []
    for line in (transcript or "").splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        match = _SPEAKER_LINE.match(stripped)
        if match:
            turns.append(f"**{match.group('speaker').strip()}**: {match.group('text').strip()}")
        else:
            turns.append(stripped)
    return "\n\n".join(turns)


def synthesize(artifacts: List[Dict[str, str]], limit: int = 3) -> Dict[str, Any]:
    """Derive findings, recommendations and next steps from artifact texts.

    A theme is a keyword; themes that appear in more artifacts rank higher.
    """
    document_frequency: Counter = Counter()
    occurrences: Dict[str, List[str]] = {}
    for artifact in artifacts:
        text = re.sub(r"<!--.*?-->", " ", artifact.get("content", ""), flags=re.DOTALL)
        text = "\n".join(line for line in text.splitlines() if not line.lstrip().startswith("#"))
        for word in dict.fromkeys(keywords(text)):
            document_frequency[word] += 1
            occurrences.setdefault(word, []).append(artifact.get("name", "artifact"))

    themes = [word for word, _ in document_frequency.most_common(limit)]
    findings = [
        {
            "number": number,
            "description": f"'{theme}' recurs across {document_frequency[theme]} research artifacts",
            "evidence": ", ".join(sorted(occurrences[theme])),
            "implications": f"Design decisions touching {theme} should be validated with users",
        }
        for number, theme in enumerate(themes, start=1)
    ]
    recommendations = [f"Prioritize improvements related to {theme}" for theme in themes]
    next_steps = ["Validate findings with usability testing", "Share insights with stakeholders"]
    if themes:
        next_steps.append(f"Plan follow-up interviews focused on {themes[0]}")
    return {"keyFindings": findings, "recommendations": recommendations, "nextSteps": next_steps}
