"""Code executors: the capability that actually runs a generated script.

The runtime depends only on the `CodeExecutor` protocol. `PythonExecutor`
is the built-in implementation and runs the compiled module with
``exec()`` in the namespace the runtime prepared.

Output Helpers:
    Before running, `PythonExecutor` binds the output sink into the
    namespace so generated statements and embedded code write to it:

    - ``_write(text)``: used by generated statements
    - ``write(text)``: same, for embedded code
    - ``echo(*values, sep="")``: write values converted with ``str()``
    - ``print(...)``: builtin print with ``file`` defaulting to the sink
"""

from __future__ import annotations

import builtins
import functools
from typing import IO, TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from kiln.compiler.script import GeneratedScript


@runtime_checkable
class CodeExecutor(Protocol):
    def execute(self, script: GeneratedScript, namespace: dict[str, Any], output: IO[str]) -> None:
        """Run ``script`` in ``namespace``, writing its output to ``output``.

        Exceptions raised by the embedded code propagate unchanged.
        """
        ...


def bind_output(namespace: dict[str, Any], output: IO[str]) -> None:
    """Bind the output helpers for ``output`` into ``namespace``."""
    write = output.write

    def echo(*values: Any, sep: str = "") -> None:
        write(sep.join("" if v is None else str(v) for v in values))

    namespace["_write"] = write
    namespace["write"] = write
    namespace["echo"] = echo
    namespace["print"] = functools.partial(builtins.print, file=output)


class PythonExecutor:
    """Run scripts with the interpreter's own ``exec()``.

    Isolation is by namespace only: embedded code has full access to
    builtins and can import anything.
    """

    __slots__ = ()

    def execute(self, script: GeneratedScript, namespace: dict[str, Any], output: IO[str]) -> None:
        bind_output(namespace, output)
        exec(script.code, namespace)

    def __repr__(self) -> str:
        return "PythonExecutor()"
