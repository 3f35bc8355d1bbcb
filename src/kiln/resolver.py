"""Include resolver: splice included files into a scanned document.

Every `IncludeDirective` is replaced by the segments of the file it names,
scanned and resolved recursively, so the result contains no directives.
Spliced segments keep the included file's own name and line numbers.

A directive that cannot be satisfied is a soft failure: it becomes an empty
`Literal`, an `IncludeWarning` is logged and recorded, and resolution goes
on. This covers files missing from every search directory and cycles
(a file already being included further up the current include chain).

"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from kiln.environment.exceptions import ErrorCode, IncludeWarning, TemplateNotFoundError
from kiln.environment.loaders import Loader, SearchPathLoader
from kiln.nodes import Document, IncludeDirective, Literal, Segment
from kiln.scanner import scan

logger = logging.getLogger(__name__)


def file_identity(filename: str | os.PathLike[str]) -> str:
    """Key identifying a file on the include chain."""
    return os.path.normcase(os.path.realpath(filename))


@dataclass(frozen=True, slots=True)
class ResolvedDocument:
    """A document with every include spliced in.

    Attributes:
        document: Segments with no include directives left
        warnings: Include problems, in document order
        sources: Source text of every file that contributed segments
    """

    document: Document
    warnings: tuple[IncludeWarning, ...] = ()
    sources: dict[str, str] = field(default_factory=dict)


class IncludeResolver:
    """Resolve include directives through a loader.

    Thread-Safety:
        Per-call state lives in local variables; one resolver can serve
        concurrent resolve() calls if its loader can.
    """

    __slots__ = ("_loader",)

    def __init__(self, loader: Loader):
        self._loader = loader

    def resolve(self, document: Document, *, origin: str | Path | None = None) -> ResolvedDocument:
        """Splice all includes of ``document``.

        Args:
            document: Scanned top-level document
            origin: Path of the top-level file, if it came from disk, so
                a file including itself is detected as a cycle

        Raises:
            ScanError: If an included file has an unterminated construct
        """
        warnings: list[IncludeWarning] = []
        sources = {document.name: document.source}
        active = frozenset({file_identity(origin)}) if origin is not None else frozenset()
        segments = self._splice(document, active, warnings, sources)
        return ResolvedDocument(
            document=document.replace(segments=tuple(segments)),
            warnings=tuple(warnings),
            sources=sources,
        )

    def _splice(
        self,
        document: Document,
        active: frozenset[str],
        warnings: list[IncludeWarning],
        sources: dict[str, str],
    ) -> list[Segment]:
        out: list[Segment] = []
        for segment in document.segments:
            if not isinstance(segment, IncludeDirective):
                out.append(segment)
                continue

            try:
                source, filename = self._loader.get_source(segment.path)
            except TemplateNotFoundError:
                self._warn(warnings, document, segment, ErrorCode.INCLUDE_NOT_FOUND)
                out.append(Literal(segment.lineno, "", filename=document.name))
                continue

            identity = file_identity(filename)
            if identity in active:
                self._warn(warnings, document, segment, ErrorCode.INCLUDE_CYCLE)
                out.append(Literal(segment.lineno, "", filename=document.name))
                continue

            sources.setdefault(filename, source)
            child = scan(source, filename)
            out.extend(self._splice(child, active | {identity}, warnings, sources))
        return out

    @staticmethod
    def _warn(
        warnings: list[IncludeWarning],
        document: Document,
        directive: IncludeDirective,
        code: ErrorCode,
    ) -> None:
        warning = IncludeWarning(document.name, directive.lineno, directive.path, code)
        logger.warning(warning.message)
        warnings.append(warning)


def resolve(
    document: Document,
    include_path: Iterable[str | Path] = (),
    *,
    loader: Loader | None = None,
    origin: str | Path | None = None,
) -> ResolvedDocument:
    """Resolve the includes of ``document``.

    Args:
        document: Scanned document
        include_path: Directories searched after the current directory
        loader: Loader to use instead of a `SearchPathLoader` over include_path
        origin: Path of the top-level file, for self-include detection
    """
    if loader is None:
        loader = SearchPathLoader(list(include_path))
    return IncludeResolver(loader).resolve(document, origin=origin)
