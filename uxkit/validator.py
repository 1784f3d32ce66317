"""Static checks for UX-Kit templates.

The validator never raises: every check returns a
:class:`~uxkit.models.ValidationResult` whose ``errors`` list holds the
human-readable messages in the order the problems were detected. It works
on the raw template text and does not depend on a successful render.
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional

from .grammar import TAG_PATTERN, count_delimiters, is_control_reference
from .models import ValidationResult
from .values import is_defined, resolve_path, split_path

logger = logging.getLogger("uxkit.validator")

MAX_LINE_LENGTH = 200

UNCLOSED_BRACES = "Unclosed template braces detected"
MISMATCHED_IF = "Mismatched {{#if}} and {{/if}} blocks"
MISMATCHED_EACH = "Mismatched {{#each}} and {{/each}} blocks"
NESTED_BRACES = "Nested braces detected"
MISSING_VARIABLE = "Missing required variable: {path}"
FILE_MISSING = "Template file does not exist"
FILE_UNREADABLE = "Template file is not readable"
EMPTY_TEMPLATE = "Template is empty"
LONG_LINE = "Line {number} is very long ({length} characters)"
NESTED_EACH = "Nested {{#each}} blocks detected - may cause performance issues"

_IF_OPENER = re.compile(r"\{\{#if\s+[^}]+\}\}")
_IF_CLOSER = re.compile(r"\{\{/if\}\}")
_EACH_OPENER = re.compile(r"\{\{#each\s+[^}]+\}\}")
_EACH_CLOSER = re.compile(r"\{\{/each\}\}")
_EACH_BLOCK = re.compile(r"\{\{#each\s+[^}]+\}[\s\S]*?\{\{/each\}\}")


class TemplateValidator:
    """Validate template syntax, variables, files and content."""

    def validate(self, template: str) -> ValidationResult:
        """Run the structural syntax checks.

        All four checks always run; ``is_valid`` is true only when none of
        them reported a problem.
        """
        template = template or ""
        errors: List[str] = []

        opened, closed = count_delimiters(template)
        if opened != closed:
            errors.append(UNCLOSED_BRACES)

        if len(_IF_OPENER.findall(template)) != len(_IF_CLOSER.findall(template)):
            errors.append(MISMATCHED_IF)

        if len(_EACH_OPENER.findall(template)) != len(_EACH_CLOSER.findall(template)):
            errors.append(MISMATCHED_EACH)

        if "{{{{" in template or "}}}}" in template:
            errors.append(NESTED_BRACES)

        return ValidationResult.from_errors(errors)

    def validate_variables(self, template: str, variables: Optional[Mapping[str, Any]]) -> ValidationResult:
        """Report every referenced path that has no value in ``variables``."""
        bindings = variables or {}
        errors = [
            MISSING_VARIABLE.format(path=path)
            for path in extract_variables(template)
            if not is_defined(resolve_path(bindings, split_path(path)))
        ]
        return ValidationResult.from_errors(errors)

    def validate_file(self, template_path: str, storage: Any) -> ValidationResult:
        """Check that ``template_path`` exists and can be read through ``storage``."""
        errors: List[str] = []
        try:
            if not storage.path_exists(template_path):
                errors.append(FILE_MISSING)
            else:
                try:
                    storage.read_file(template_path)
                except Exception as e:
                    logger.debug(f"Template file {template_path} is not readable: {e}")
                    errors.append(FILE_UNREADABLE)
        except Exception as e:
            logger.debug(f"Could not stat template file {template_path}: {e}")
            errors.append(FILE_MISSING)
        return ValidationResult.from_errors(errors)

    def validate_content(self, template: str) -> ValidationResult:
        """Heuristic lint: empty templates, long lines, nested iteration."""
        errors: List[str] = []

        if not template or not template.strip():
            errors.append(EMPTY_TEMPLATE)

        for number, line in enumerate((template or "").split("\n"), start=1):
            if len(line) > MAX_LINE_LENGTH:
                errors.append(LONG_LINE.format(number=number, length=len(line)))

        for block in _EACH_BLOCK.findall(template or ""):
            if block.count("{{#each") > 1:
                errors.append(NESTED_EACH)

        return ValidationResult.from_errors(errors)

    def validate_all(self, template: str, variables: Optional[Mapping[str, Any]] = None) -> ValidationResult:
        """Syntax checks, plus variable checks when ``variables`` is given."""
        result = self.validate(template)
        if variables is not None:
            result = result.merge(self.validate_variables(template, variables))
        return result


def extract_variables(template: str) -> List[str]:
    """Return the distinct variable paths referenced by ``template``.

    Block, closer and partial tags are skipped, as is the bare ``this``
    reference. Paths are returned in first-seen order.
    """
    seen: List[str] = []
    for match in TAG_PATTERN.finditer(template or ""):
        reference = match.group(1).strip()
        if is_control_reference(reference) or reference == "this":
            continue
        if reference not in seen:
            seen.append(reference)
    return seen


_default_validator = TemplateValidator()


def validate(template: str) -> ValidationResult:
    return _default_validator.validate(template)


def validate_variables(template: str, variables: Optional[Mapping[str, Any]]) -> ValidationResult:
    return _default_validator.validate_variables(template, variables)


def validate_content(template: str) -> ValidationResult:
    return _default_validator.validate_content(template)
