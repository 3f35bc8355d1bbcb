"""Pytest configuration and fixtures for kiln tests."""

import pytest

from kiln import DictLoader, Environment
from kiln.environment import terminal


@pytest.fixture(autouse=True)
def plain_terminal(monkeypatch):
    """Keep diagnostics free of ANSI codes regardless of the test runner's tty."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def env():
    """Create a basic kiln Environment."""
    return Environment()


@pytest.fixture
def template_dir(tmp_path, monkeypatch):
    """A scratch working directory with an ``includes/`` search directory.

    The current directory is switched to ``tmp_path`` so the implicit
    current-directory search never picks up files from the repository.
    """
    includes = tmp_path / "includes"
    includes.mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def env_with_loader():
    """Create an Environment whose includes come from a DictLoader."""
    loader = DictLoader(
        {
            "header.txt": "== {$title} ==\n",
            "footer.txt": "-- {$author,raw} --",
            "counter.txt": "<?py count = count + 1 ?>",
            "nested.txt": "[<?include header.txt?>]",
            "loop_a.txt": "a<?include loop_b.txt?>",
            "loop_b.txt": "b<?include loop_a.txt?>",
        }
    )
    return Environment(loader=loader)


def assert_contains(output: str, *expected_parts: str) -> None:
    """Assert the output contains all expected parts."""
    for part in expected_parts:
        assert part in output, (
            f"Template output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {output!r}"
        )
