"""Base node class for scanned template segments."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all segments.

    Every segment records the file and 1-based line it starts on. After
    include resolution, spliced segments still name the included file.
    Segments are immutable so documents can be shared between threads.

    """

    lineno: int
    filename: str = field(default="<template>", kw_only=True)
