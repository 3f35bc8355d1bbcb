"""Utility helpers for kiln."""

from kiln.utils.escape import raw, to_text, uri_escape, xml_escape

__all__ = ["raw", "to_text", "uri_escape", "xml_escape"]
