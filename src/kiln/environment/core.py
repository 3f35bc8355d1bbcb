"""Environment: compile and expand templates with shared defaults.

Pipeline:
    Template Source -> Scanner -> Include Resolver -> Code Generator -> run()

An Environment bundles the process-level settings (include path or loader,
escape registry, code executor, encoding). Per-call options override them.

Example:
    >>> env = Environment(include_path=["partials/"])
    >>> env.expand(source="Hello {$name}!", name="Tom & Jerry")
    'Hello Tom &#38; Jerry!'

    >>> script = env.compile(source_file="report.txt")
    >>> env.run(script, ExecutionConfig(output_file="report.out"), rows=rows)

Thread-Safety:
    compile(), run() and expand() keep per-call state only.
    add_escape_style() swaps in a new registry (copy-on-write); runs
    already in flight keep the registry they started with.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import IO, Any

from kiln.compiler import GeneratedScript, generate
from kiln.environment.config import ExecutionConfig
from kiln.environment.exceptions import TemplateNotFoundError
from kiln.environment.loaders import Loader, SearchPathLoader
from kiln.environment.registry import DEFAULT_ESCAPES, EscapeRegistry, EscapeStyle
from kiln.executor import CodeExecutor, PythonExecutor
from kiln.resolver import IncludeResolver
from kiln.runtime import run as run_script
from kiln.scanner import scan

logger = logging.getLogger(__name__)

Source = str | os.PathLike[str] | IO[str]


class Environment:
    """Central configuration for compiling and running templates.

    Attributes:
        include_path: Directories searched (after the current directory)
            for ``<?include?>`` files
        loader: Loader used for includes instead of include_path, if set
        executor: Code executor handed the compiled scripts
        encoding: Encoding for template and output files

    """

    __slots__ = ("_escapes", "encoding", "executor", "include_path", "loader")

    def __init__(
        self,
        *,
        include_path: Iterable[str | Path] = (),
        loader: Loader | None = None,
        escapes: EscapeRegistry | None = None,
        executor: CodeExecutor | None = None,
        encoding: str = "utf-8",
    ):
        self.include_path: tuple[str | Path, ...] = (
            (include_path,) if isinstance(include_path, (str, Path)) else tuple(include_path)
        )
        self.loader = loader
        self._escapes = escapes or DEFAULT_ESCAPES
        self.executor: CodeExecutor = executor or PythonExecutor()
        self.encoding = encoding

    @property
    def escapes(self) -> EscapeRegistry:
        """Current escape registry."""
        return self._escapes

    def add_escape_style(self, name: str, func: EscapeStyle) -> None:
        """Register an escaping style.

        Styles are resolved at run time, so scripts compiled earlier pick
        the new style up on their next run.
        """
        self._escapes = self._escapes.with_style(name, func)

    # ─────────────────────────────────────────────────────────────────────
    # Compilation
    # ─────────────────────────────────────────────────────────────────────

    def _read_source(
        self, source: str | None, source_file: Source | None, reported_name: str | None
    ) -> tuple[str, str, str | None]:
        """Return (text, display name, origin path) for the selected source."""
        if (source is None) == (source_file is None):
            raise TypeError("Exactly one of 'source' or 'source_file' is required")
        if source is not None:
            return source, reported_name or "<string>", None
        if isinstance(source_file, (str, os.PathLike)):
            path = Path(source_file)
            if not path.is_file():
                raise TemplateNotFoundError(f"Template file '{path}' not found")
            return path.read_text(self.encoding), reported_name or str(path), str(path)
        text = source_file.read()  # type: ignore[union-attr]
        name = getattr(source_file, "name", None)
        return text, reported_name or (name if isinstance(name, str) else "<stream>"), None

    def _loader_for(self, include_path: Iterable[str | Path] | None) -> Loader:
        if include_path is not None:
            return SearchPathLoader(list(include_path), self.encoding)
        if self.loader is not None:
            return self.loader
        return SearchPathLoader(list(self.include_path), self.encoding)

    def compile(
        self,
        source: str | None = None,
        *,
        source_file: Source | None = None,
        include_path: Iterable[str | Path] | None = None,
        reported_name: str | None = None,
    ) -> GeneratedScript:
        """Compile a template into a GeneratedScript.

        Args:
            source: Template text
            source_file: Path or readable stream holding the template
            include_path: Include directories for this compilation only
            reported_name: Name used in diagnostics

        Raises:
            ScanError: On an unterminated construct
            CodeSyntaxError: If a code block is not valid Python
            TemplateNotFoundError: If ``source_file`` does not exist
        """
        text, name, origin = self._read_source(source, source_file, reported_name)
        document = scan(text, name)
        resolved = IncludeResolver(self._loader_for(include_path)).resolve(document, origin=origin)
        return generate(resolved.document, sources=resolved.sources, warnings=resolved.warnings)

    # ─────────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────────

    def run(
        self,
        script: GeneratedScript,
        config: ExecutionConfig | None = None,
        context: Mapping[str, Any] | None = None,
        **variables: Any,
    ) -> str | None:
        """Run a compiled script.

        Variables come from ``context`` and keyword arguments (keywords win).
        Returns the captured output, or None for caller-owned sinks.
        """
        merged = {**(context or {}), **variables}
        return run_script(
            script, config, merged, escapes=self._escapes, executor=self.executor
        )

    def expand(
        self,
        *,
        source: str | None = None,
        source_file: Source | None = None,
        output_file: str | os.PathLike[str] | IO[str] | None = None,
        errors_to: Any = None,
        include_path: Iterable[str | Path] | None = None,
        reported_filename: str | None = None,
        namespace_id: str | None = None,
        context: Mapping[str, Any] | None = None,
        **variables: Any,
    ) -> str | None:
        """Compile and run a template in one call.

        Compile errors always raise; run-time errors follow ``errors_to``.

        Example:
            >>> env.expand(source="<?include missing.txt?>OK")
            'OK'
        """
        config = ExecutionConfig.build(
            output_file=output_file,
            errors_to=errors_to,
            include_path=include_path if include_path is not None else self.include_path,
            reported_filename=reported_filename,
            namespace_id=namespace_id,
            encoding=self.encoding,
        )
        script = self.compile(
            source,
            source_file=source_file,
            include_path=include_path,
            reported_name=reported_filename,
        )
        return self.run(script, config, context, **variables)

    def __repr__(self) -> str:
        return (
            f"<Environment include_path={list(self.include_path)!r} "
            f"escapes={sorted(self._escapes)!r}>"
        )


_default_env = Environment()


def compile_template(
    source: str | None = None,
    *,
    source_file: Source | None = None,
    include_path: Iterable[str | Path] = (),
    reported_name: str | None = None,
) -> GeneratedScript:
    """Compile with default settings. See `Environment.compile`."""
    return _default_env.compile(
        source,
        source_file=source_file,
        include_path=include_path,
        reported_name=reported_name,
    )


def expand(**options: Any) -> str | None:
    """Compile and run with default settings. See `Environment.expand`."""
    return _default_env.expand(**options)
