"""Segment nodes produced by the scanner.

A template is a flat, ordered sequence of four segment kinds:

- `Literal`: text emitted unchanged
- `Code`: embedded Python copied verbatim into the generated script
- `Interpolation`: ``{$name}`` / ``{$name,style}`` escaped value output
- `IncludeDirective`: ``<?include path?>``, replaced by the resolver

There is no nesting. Document order is output order.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from kiln.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Literal(Node):
    """Text outside any construct."""

    text: str


@dataclass(frozen=True, slots=True)
class Code(Node):
    """Embedded code block: <?py ... ?>"""

    text: str


@dataclass(frozen=True, slots=True)
class Interpolation(Node):
    """Variable output: {$name} or {$name,style}

    ``style`` is None when the template names no escaping style; the
    registry's default applies at run time.
    """

    name: str
    style: str | None = None


@dataclass(frozen=True, slots=True)
class IncludeDirective(Node):
    """Textual include: <?include path?>"""

    path: str


Segment = Literal | Code | Interpolation | IncludeDirective


@dataclass(frozen=True, slots=True)
class Document:
    """Ordered segments of one template plus its display name.

    Attributes:
        name: Name used in diagnostics (file path or reported name)
        segments: Segments in document order
        source: Original text, kept for error snippets

    """

    name: str
    segments: tuple[Segment, ...]
    source: str = ""

    def replace(self, **changes: object) -> Document:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @property
    def includes(self) -> tuple[IncludeDirective, ...]:
        """Include directives still present in this document."""
        return tuple(s for s in self.segments if isinstance(s, IncludeDirective))

    def __len__(self) -> int:
        return len(self.segments)
