"""Immutable section trees used to compose prompts."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple, Union

from .parameters import Parameter, substitute

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")


@dataclass(frozen=True)
class Section:
    """A titled node whose items are text blocks or nested sections."""

    title: str
    items: Tuple["SectionItem", ...] = ()

    def add(self, *items: "SectionItem") -> "Section":
        """Return a copy of this section with ``items`` appended."""
        return Section(title=self.title, items=self.items + tuple(items))

    @property
    def subsections(self) -> List["Section"]:
        return [item for item in self.items if isinstance(item, Section)]

    def to_dict(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "items": [
                item.to_dict() if isinstance(item, Section) else item for item in self.items
            ],
        }


SectionItem = Union[str, Section]


def replace_parameters(section: Section, parameters: Mapping[str, Parameter]) -> Section:
    """Return a new tree with placeholders substituted in every title and text block."""
    items: List[SectionItem] = []
    for item in section.items:
        if isinstance(item, Section):
            items.append(replace_parameters(item, parameters))
        else:
            items.append(substitute(item, parameters))
    return Section(title=substitute(section.title, parameters), items=tuple(items))


def parse_markdown(text: str, title: str = "") -> Section:
    """Split markdown into a section tree keyed on ATX headings.

    Text before the first heading belongs to the root section. Each heading
    opens a subsection nested under the closest shallower heading.
    """
    # stack of (level, title, items); root sits at level 0
    stack: List[Tuple[int, str, List[SectionItem]]] = [(0, title, [])]
    buffer: List[str] = []

    def flush() -> None:
        block = "\n".join(buffer).strip("\n")
        buffer.clear()
        if block.strip():
            stack[-1][2].append(block)

    def close() -> None:
        level, heading, items = stack.pop()
        stack[-1][2].append(Section(title=heading, items=tuple(items)))

    in_fence = False
    for line in text.splitlines():
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        match = None if in_fence else _HEADING_RE.match(line)
        if match is None:
            buffer.append(line)
            continue
        flush()
        level = len(match.group(1))
        while stack[-1][0] >= level:
            close()
        stack.append((level, match.group(2), []))

    flush()
    while len(stack) > 1:
        close()
    return Section(title=title, items=tuple(stack[0][2]))


def render_markdown(section: Section, depth: int = 1, *, include_title: bool = True) -> str:
    """Render a section tree as markdown, one heading level per nesting depth."""
    parts: List[str] = []
    child_depth = depth
    if include_title and section.title:
        parts.append(f"{'#' * min(depth, 6)} {section.title}")
        child_depth = depth + 1
    for item in section.items:
        if isinstance(item, Section):
            rendered = render_markdown(item, child_depth)
        else:
            rendered = item.strip("\n")
        if rendered:
            parts.append(rendered)
    return "\n\n".join(parts)


__all__ = ["Section", "SectionItem", "parse_markdown", "render_markdown", "replace_parameters"]
