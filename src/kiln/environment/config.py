"""Per-execution configuration.

`ExecutionConfig` is a value object built by the caller and read by the
runtime. Sink kinds are derived from the values given:

=================  ==========================  =========================
option             value                       sink
=================  ==========================  =========================
``output_file``    None                        captured string (returned)
``output_file``    str / os.PathLike           file, opened for writing
``output_file``    object with ``write()``     caller-owned stream
``errors_to``      None                        propagate (raise)
``errors_to``      object with ``write()``     stream (message written)
``errors_to``      other callable              callback(error)
=================  ==========================  =========================
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kiln.environment.exceptions import ExecutionError


class OutputSink(Enum):
    CAPTURED = "captured"
    FILE = "file"
    STREAM = "stream"


class ErrorSink(Enum):
    PROPAGATE = "propagate"
    CALLBACK = "callback"
    STREAM = "stream"


def new_namespace_id() -> str:
    """Fresh, process-unique namespace token."""
    return uuid.uuid4().hex


def _is_stream(obj: object) -> bool:
    return callable(getattr(obj, "write", None))


@dataclass(frozen=True, slots=True)
class ExecutionConfig:
    """How one execution of a script is wired.

    Attributes:
        output_file: Output sink (see module docs); None captures to a string
        errors_to: Error sink (see module docs); None re-raises
        include_path: Directories searched for includes when compiling
        reported_filename: Name used for the template in diagnostics
        namespace_id: Unique token naming the execution namespace
        encoding: Encoding used when ``output_file`` is a path

    """

    output_file: str | os.PathLike[str] | IO[str] | None = None
    errors_to: Callable[[ExecutionError], Any] | IO[str] | None = None
    include_path: tuple[str | Path, ...] = ()
    reported_filename: str | None = None
    namespace_id: str = field(default_factory=new_namespace_id)
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if isinstance(self.include_path, (str, Path)):
            object.__setattr__(self, "include_path", (self.include_path,))
        elif not isinstance(self.include_path, tuple):
            object.__setattr__(self, "include_path", tuple(self.include_path))
        if not (
            self.output_file is None
            or isinstance(self.output_file, (str, os.PathLike))
            or _is_stream(self.output_file)
        ):
            raise TypeError(
                f"output_file must be a path or a writable stream, "
                f"got {type(self.output_file).__name__}"
            )
        if not (self.errors_to is None or _is_stream(self.errors_to) or callable(self.errors_to)):
            raise TypeError(
                f"errors_to must be a callable or a writable stream, "
                f"got {type(self.errors_to).__name__}"
            )

    @property
    def output_sink(self) -> OutputSink:
        if self.output_file is None:
            return OutputSink.CAPTURED
        if isinstance(self.output_file, (str, os.PathLike)):
            return OutputSink.FILE
        return OutputSink.STREAM

    @property
    def error_sink(self) -> ErrorSink:
        if self.errors_to is None:
            return ErrorSink.PROPAGATE
        if _is_stream(self.errors_to):
            return ErrorSink.STREAM
        return ErrorSink.CALLBACK

    @classmethod
    def build(
        cls,
        *,
        output_file: str | os.PathLike[str] | IO[str] | None = None,
        errors_to: Callable[[ExecutionError], Any] | IO[str] | None = None,
        include_path: Iterable[str | Path] = (),
        reported_filename: str | None = None,
        namespace_id: str | None = None,
        encoding: str = "utf-8",
    ) -> ExecutionConfig:
        """Build a config, allocating a fresh namespace id unless given."""
        return cls(
            output_file=output_file,
            errors_to=errors_to,
            include_path=include_path,  # type: ignore[arg-type]
            reported_filename=reported_filename,
            namespace_id=namespace_id or new_namespace_id(),
            encoding=encoding,
        )
