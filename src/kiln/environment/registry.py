"""Escaping-style registry.

Maps style names used in ``{$name,style}`` to escaping functions. Lookups
are lenient: an absent or unknown style name falls back to the default
style (``xml``) instead of failing.

Registries are immutable. Extending one returns a new registry
(copy-on-write), so a registry can be shared by any number of threads and
compilations without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from kiln.utils.escape import raw, uri_escape, xml_escape

logger = logging.getLogger(__name__)

EscapeStyle = Callable[[Any], str]

DEFAULT_STYLE = "xml"

BUILTIN_STYLES: Mapping[str, EscapeStyle] = MappingProxyType(
    {
        "xml": xml_escape,
        "uri": uri_escape,
        "raw": raw,
    }
)


class EscapeRegistry(Mapping[str, EscapeStyle]):
    """Read-only mapping of style name -> escaping function.

    Supports:
        - registry['uri'] -> function
        - 'uri' in registry
        - registry.escape('uri', value)
        - registry.with_style('upper', str.upper) -> new registry

    Example:
        >>> escapes = EscapeRegistry()
        >>> escapes.escape("xml", "<b>")
        '&#60;b&#62;'
        >>> escapes.escape("no-such-style", "<b>")  # falls back to xml
        '&#60;b&#62;'
    """

    __slots__ = ("_default", "_styles")

    def __init__(
        self,
        styles: Mapping[str, EscapeStyle] | None = None,
        *,
        default: str = DEFAULT_STYLE,
    ):
        table = dict(BUILTIN_STYLES if styles is None else styles)
        if default not in table:
            raise ValueError(f"Default escape style '{default}' is not registered")
        self._styles: Mapping[str, EscapeStyle] = MappingProxyType(table)
        self._default = default

    def __getitem__(self, name: str) -> EscapeStyle:
        return self._styles[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._styles)

    def __len__(self) -> int:
        return len(self._styles)

    @property
    def default(self) -> str:
        """Name of the fallback style."""
        return self._default

    def resolve(self, name: str | None) -> EscapeStyle:
        """Return the style for ``name``, or the default style."""
        if name is not None:
            style = self._styles.get(name)
            if style is not None:
                return style
            logger.debug(f"Unknown escape style {name!r}, using {self._default!r}")
        return self._styles[self._default]

    def escape(self, name: str | None, value: Any) -> str:
        """Escape ``value`` with the named style (default style if unknown)."""
        return self.resolve(name)(value)

    def with_style(self, name: str, func: EscapeStyle) -> EscapeRegistry:
        """Return a new registry with ``name`` added or replaced."""
        table = dict(self._styles)
        table[name] = func
        return EscapeRegistry(table, default=self._default)

    def with_default(self, name: str) -> EscapeRegistry:
        """Return a new registry whose fallback style is ``name``."""
        return EscapeRegistry(self._styles, default=name)

    def __repr__(self) -> str:
        return f"EscapeRegistry({sorted(self._styles)!r}, default={self._default!r})"


DEFAULT_ESCAPES = EscapeRegistry()
