"""Segment model for scanned templates."""

from kiln.nodes.base import Node
from kiln.nodes.segments import (
    Code,
    Document,
    IncludeDirective,
    Interpolation,
    Literal,
    Segment,
)

__all__ = [
    "Code",
    "Document",
    "IncludeDirective",
    "Interpolation",
    "Literal",
    "Node",
    "Segment",
]
