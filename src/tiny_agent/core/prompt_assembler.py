"""Layered system prompt assembly.

Sections are supplied independently and in any order; ``render()`` always
returns them in the fixed order of ``SectionKind`` so the prompt a model sees
does not depend on call order.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from ..utils import prompts

logger = logging.getLogger(__name__)


class SectionKind(str, Enum):
    """Section kinds, declared in render order."""
    IDENTITY = "identity"
    ROLE = "role"
    SYSTEM_MESSAGE = "system_message"
    CONTEXT = "context"
    TOOLS = "tools"
    TASKS = "tasks"
    OUTPUT_FORMAT = "output_format"
    SUPPRESSION_DIRECTIVE = "suppression_directive"


SECTION_ORDER: tuple[SectionKind, ...] = tuple(SectionKind)


@dataclass(frozen=True)
class PromptSection:
    kind: SectionKind
    text: str


def _section_kind(kind: SectionKind | str) -> SectionKind | None:
    try:
        return SectionKind(kind)
    except ValueError:
        logger.warning(f"Ignoring unknown section kind {kind!r}")
        return None


def _indent(text: str, prefix: str = "    ") -> str:
    return "\n".join(prefix + line if line.strip() else line for line in text.strip("\n").splitlines())


class PromptAssembler:
    """Holds at most one value per section kind (last write wins)."""

    def __init__(self):
        self._sections: dict[SectionKind, str] = {}
        self._output_template: str = ""

    def set_section(self, kind: SectionKind | str, text: str | None) -> bool:
        """Store ``text`` under ``kind``.

        Blank text and unknown kinds are ignored and the existing value, if
        any, is kept.

        Returns:
            True if the section was stored.
        """
        kind = _section_kind(kind)
        if kind is None:
            return False
        if not isinstance(text, str) or not text.strip():
            logger.debug(f"Ignoring blank {kind.value} section")
            return False
        self._sections[kind] = text
        if kind is SectionKind.OUTPUT_FORMAT:
            self._output_template = ""
        return True

    def set_expected_output(self, format: str = "json", template: str = "") -> bool:
        """Set the expected output format and an optional template/schema."""
        if not self.set_section(SectionKind.OUTPUT_FORMAT, format):
            return False
        self._output_template = template.strip() if template else ""
        return True

    def get_section(self, kind: SectionKind | str) -> str | None:
        kind = _section_kind(kind)
        return self._sections.get(kind) if kind is not None else None

    @property
    def output_template(self) -> str:
        return self._output_template

    def clear(self) -> None:
        self._sections.clear()
        self._output_template = ""

    def sections(self, suppress_commentary: bool = False) -> list[PromptSection]:
        """Framed sections in render order."""
        rendered = []
        for kind in SECTION_ORDER:
            text = self._frame(kind, suppress_commentary)
            if text:
                rendered.append(PromptSection(kind, text))
        return rendered

    def render(self, suppress_commentary: bool = False) -> list[str]:
        """Return the ordered system messages.

        Args:
            suppress_commentary: When no explicit suppression directive was set,
                add the standard "return only the output" directive, provided an
                output format is set.
        """
        return [section.text for section in self.sections(suppress_commentary)]

    def _frame(self, kind: SectionKind, suppress_commentary: bool) -> str | None:
        text = self._sections.get(kind)
        output_format = self._sections.get(SectionKind.OUTPUT_FORMAT)

        if kind is SectionKind.SUPPRESSION_DIRECTIVE:
            if text:
                return text
            if suppress_commentary and output_format:
                return prompts.SUPPRESSION_DIRECTIVE.format(format=output_format.strip())
            return None

        if not text:
            return None

        if kind is SectionKind.IDENTITY:
            return prompts.IDENTITY_TEMPLATE.format(name=text.strip())
        if kind is SectionKind.ROLE:
            return prompts.ROLE_TEMPLATE.format(role=text.strip())
        if kind is SectionKind.CONTEXT:
            return f"{prompts.CONTEXT_HEADING}\n{_indent(text)}"
        if kind is SectionKind.TOOLS:
            return f"{prompts.TOOLS_HEADING}\n{_indent(text)}"
        if kind is SectionKind.TASKS:
            tasks = text.strip("\n")
            return f"{prompts.TASKS_HEADING}\n{tasks}"
        if kind is SectionKind.OUTPUT_FORMAT:
            framed = prompts.OUTPUT_FORMAT_TEMPLATE.format(format=text.strip())
            if self._output_template:
                framed += prompts.OUTPUT_TEMPLATE_SUFFIX.format(template=self._output_template)
            return framed
        return text
