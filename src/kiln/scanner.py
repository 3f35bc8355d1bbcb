"""Scanner: split template text into segments.

One left-to-right pass recognizes three openers:

- ``<?include`` ... ``?>``: include directive
- ``<?py`` ... ``?>``: embedded Python code
- ``{$`` ... ``}``: interpolation

Everything else accumulates into `Literal` segments, flushed when a
construct opens and at end of input.

Interpolation content must be ``$name`` or ``$name,style``. Anything else
between ``{$`` and ``}`` is literal text, so JSON, CSS or shell snippets are
never rewritten by accident. Only the opening ``{`` is consumed as text and
scanning resumes right after it.

An opener without its closer is a `ScanError` reported at the opener.

Example:
    >>> doc = scan("Hello {$name}!", "greeting.txt")
    >>> [type(s).__name__ for s in doc.segments]
    ['Literal', 'Interpolation', 'Literal']
    >>> doc.segments[1].name, doc.segments[1].style
    ('name', None)

"""

from __future__ import annotations

import keyword
import re
from bisect import bisect_right

from kiln.environment.exceptions import ErrorCode, ScanError
from kiln.nodes import Code, Document, IncludeDirective, Interpolation, Literal, Segment

CODE_OPEN = "<?py"
INCLUDE_OPEN = "<?include"
DIRECTIVE_CLOSE = "?>"
INTERPOLATION_OPEN = "{$"
INTERPOLATION_CLOSE = "}"

# Longest opener first; "<?python" or "<?xml" are plain text
_OPENER_RE = re.compile(r"<\?include(?!\w)|<\?py(?!\w)|\{\$")

_INTERPOLATION_RE = re.compile(r"\$(?P<name>\w+)(?:,(?P<style>\w+))?")


def _line_starts(source: str) -> list[int]:
    starts = [0]
    starts.extend(m.end() for m in re.finditer("\n", source))
    return starts


def parse_interpolation(content: str) -> tuple[str, str | None] | None:
    """Parse ``$name`` / ``$name,style``; None if content is not an interpolation."""
    match = _INTERPOLATION_RE.fullmatch(content)
    if match is None:
        return None
    name = match.group("name")
    if not name.isidentifier() or keyword.iskeyword(name):
        return None
    return name, match.group("style")


class Scanner:
    """Single-pass template scanner.

    Scanners are single-use: create one per source text.

    """

    __slots__ = ("_filename", "_line_starts", "_literal_start", "_segments", "_source")

    def __init__(self, source: str, filename: str = "<template>"):
        self._source = source
        self._filename = filename
        self._line_starts = _line_starts(source)
        self._segments: list[Segment] = []
        self._literal_start = 0

    def _position(self, index: int) -> tuple[int, int]:
        """Return (1-based line, 0-based column) of a source index."""
        line = bisect_right(self._line_starts, index)
        return line, index - self._line_starts[line - 1]

    def _flush_literal(self, end: int) -> None:
        if end > self._literal_start:
            lineno, _ = self._position(self._literal_start)
            self._segments.append(
                Literal(lineno, self._source[self._literal_start : end], filename=self._filename)
            )

    def _unterminated(self, index: int, what: str, closer: str, code: ErrorCode) -> ScanError:
        lineno, col = self._position(index)
        return ScanError(
            f"Unterminated {what} (missing '{closer}')",
            lineno=lineno,
            filename=self._filename,
            source=self._source,
            col_offset=col,
            code=code,
        )

    def scan(self) -> Document:
        """Scan the whole source.

        Raises:
            ScanError: If a code block, include or interpolation is not closed
        """
        source = self._source
        pos = 0
        while True:
            match = _OPENER_RE.search(source, pos)
            if match is None:
                break
            opener = match.group()
            start = match.start()

            if opener == INTERPOLATION_OPEN:
                close = source.find(INTERPOLATION_CLOSE, match.end())
                if close < 0:
                    raise self._unterminated(
                        start, "interpolation", "}", ErrorCode.UNTERMINATED_INTERPOLATION
                    )
                parsed = parse_interpolation(source[start + 1 : close])
                if parsed is None:
                    # Not ours: keep the brace as text and look again after it
                    pos = start + 1
                    continue
                self._flush_literal(start)
                name, style = parsed
                self._segments.append(
                    Interpolation(
                        self._position(start)[0], name, style, filename=self._filename
                    )
                )
                pos = close + len(INTERPOLATION_CLOSE)
            else:
                close = source.find(DIRECTIVE_CLOSE, match.end())
                if opener == CODE_OPEN:
                    if close < 0:
                        raise self._unterminated(
                            start, "code block", DIRECTIVE_CLOSE, ErrorCode.UNTERMINATED_CODE
                        )
                    segment: Segment = Code(
                        self._position(start)[0],
                        source[match.end() : close],
                        filename=self._filename,
                    )
                else:
                    if close < 0:
                        raise self._unterminated(
                            start, "include directive", DIRECTIVE_CLOSE,
                            ErrorCode.UNTERMINATED_INCLUDE,
                        )
                    segment = IncludeDirective(
                        self._position(start)[0],
                        source[match.end() : close].strip(),
                        filename=self._filename,
                    )
                self._flush_literal(start)
                self._segments.append(segment)
                pos = close + len(DIRECTIVE_CLOSE)
            self._literal_start = pos

        self._flush_literal(len(source))
        return Document(name=self._filename, segments=tuple(self._segments), source=source)


def scan(text: str, filename: str = "<template>") -> Document:
    """Scan template text into a Document.

    Args:
        text: Template source
        filename: Name used for diagnostics

    Raises:
        ScanError: On an unterminated construct
    """
    return Scanner(text, filename).scan()
