"""Code generation: resolved documents to executable scripts."""

from kiln.compiler.core import CodeGenerator, generate
from kiln.compiler.script import GeneratedScript, LineMarker

__all__ = ["CodeGenerator", "GeneratedScript", "LineMarker", "generate"]
