"""Include loaders.

Loaders give the include resolver the text of included files. They
implement `get_source(name)` returning `(source, filename)` and raise
`TemplateNotFoundError` when the name cannot be found.

Built-in Loaders:
- `SearchPathLoader`: current directory, then an ordered list of directories
- `DictLoader`: in-memory mapping (testing/embedded templates)

Custom Loaders:
Implement the Loader protocol:
    ```python
    class DatabaseLoader:
        def get_source(self, name: str) -> tuple[str, str]:
            row = db.query("SELECT body FROM fragments WHERE name = ?", name)
            if not row:
                raise TemplateNotFoundError(f"Fragment '{name}' not found")
            return row.body, f"db/{name}"
    ```

The returned filename names the included file in diagnostics and, once
made absolute, identifies it for cycle detection.

"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from kiln.environment.exceptions import TemplateNotFoundError


@runtime_checkable
class Loader(Protocol):
    def get_source(self, name: str) -> tuple[str, str]: ...


class SearchPathLoader:
    """Load include files from the current directory and a search path.

    Directories are searched in order and the first existing file wins. The
    current working directory is searched first unless ``search_cwd`` is
    False. Absolute names are used as they are.

    Example:
            >>> loader = SearchPathLoader(["site/", "shared/"])
            >>> source, filename = loader.get_source("footer.txt")
            >>> filename
            'shared/footer.txt'

    Raises:
        TemplateNotFoundError: If the file is not found in any directory

    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | Iterable[str | Path] = (),
        encoding: str = "utf-8",
        *,
        search_cwd: bool = True,
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        dirs = [Path(p) for p in paths]
        if search_cwd:
            dirs.insert(0, Path())
        self._paths = dirs
        self._encoding = encoding

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    def find(self, name: str) -> Path | None:
        """Return the first matching file, or None."""
        candidate = Path(name)
        if candidate.is_absolute():
            return candidate if candidate.is_file() else None
        for base in self._paths:
            path = base / candidate
            if path.is_file():
                return path
        return None

    def get_source(self, name: str) -> tuple[str, str]:
        """Read an include file from the search path."""
        path = self.find(name) if name else None
        if path is None:
            searched = ", ".join(str(p) for p in self._paths) or "(no directories)"
            raise TemplateNotFoundError(f"Include '{name}' not found in: {searched}")
        return path.read_text(self._encoding), str(path)


class DictLoader:
    """Load include files from an in-memory dictionary.

    Example:
            >>> loader = DictLoader({"header.txt": "== {$title} =="})
            >>> env = Environment(loader=loader)
            >>> env.expand(source="<?include header.txt?>", title="News")
            '== News =='

    Raises:
        TemplateNotFoundError: If the name is not in the mapping

    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = mapping

    def get_source(self, name: str) -> tuple[str, str]:
        if name not in self._mapping:
            from difflib import get_close_matches

            msg = f"Include '{name}' not found"
            matches = get_close_matches(name, sorted(self._mapping), n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            raise TemplateNotFoundError(msg)
        return self._mapping[name], name

    def list_templates(self) -> list[str]:
        return sorted(self._mapping)
