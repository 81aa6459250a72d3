import io
import shutil
import subprocess
from pathlib import Path

import pytest
from rich.console import Console
from rich.text import Text

from watchrun.config import WatchrunConfig
from watchrun.results import RunContext


class RecordingRenderer:
    """LineRenderer that records every call instead of drawing."""

    def __init__(self, width: int = 80):
        self.width = width
        self.calls: list[tuple] = []

    def write(self, text: str | Text) -> None:
        self.calls.append(("write", text.plain if isinstance(text, Text) else text))

    def clear_screen(self) -> None:
        self.calls.append(("clear_screen",))

    def erase_line(self) -> None:
        self.calls.append(("erase_line",))

    def erase_down(self) -> None:
        self.calls.append(("erase_down",))

    def move_cursor_to(self, column: int, row: int) -> None:
        self.calls.append(("move_cursor_to", column, row))

    def show_cursor(self, show: bool = True) -> None:
        self.calls.append(("show_cursor", show))

    @property
    def output(self) -> str:
        return "".join(call[1] for call in self.calls if call[0] == "write")

    def reset(self) -> None:
        self.calls.clear()


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def console_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(console_output: io.StringIO) -> Console:
    # Fixed width and no color for predictable output.
    return Console(file=console_output, width=100, color_system=None, force_terminal=False)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A small project with two test modules and the code they exercise."""
    root = tmp_path / "project"
    (root / "pkg").mkdir(parents=True)
    (root / "tests").mkdir()
    (root / "pkg" / "calc.py").write_text("def add(a, b):\n    return a + b\n")
    (root / "pkg" / "strings.py").write_text("def shout(s):\n    return s.upper()\n")
    (root / "tests" / "test_calc.py").write_text(
        "from pkg.calc import add\n\n"
        "def test_adds_numbers():\n    assert add(1, 2) == 3\n\n"
        "def test_subtracts_numbers():\n    assert 3 - 1 == 2\n"
    )
    (root / "tests" / "strings_test.py").write_text("def test_shout():\n    assert 'a'.upper() == 'A'\n")
    (root / "pkg" / "__init__.py").write_text("")
    (root / "__pycache__").mkdir()
    (root / "__pycache__" / "test_cached.py").write_text("")
    return root


@pytest.fixture
def project_config(project_dir: Path) -> WatchrunConfig:
    return WatchrunConfig(root_dir=project_dir)


@pytest.fixture
def project_context(project_dir: Path) -> RunContext:
    root = project_dir.resolve()
    return RunContext(
        root_dir=root,
        test_files=(root / "tests" / "strings_test.py", root / "tests" / "test_calc.py"),
    )


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    repo_path = tmp_path / "test_repo"
    if repo_path.exists():
        shutil.rmtree(repo_path)
    repo_path.mkdir()

    try:
        subprocess.run(["git", "--version"], check=True, capture_output=True, text=True)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        pytest.skip(f"Git is not available or `git --version` failed: {e}")

    subprocess.run(["git", "init"], cwd=repo_path, check=True, capture_output=True)
    subprocess.run(["git", "config", "user.name", "Test User"], cwd=repo_path, check=True)
    subprocess.run(["git", "config", "user.email", "test@example.com"], cwd=repo_path, check=True)

    (repo_path / "README.md").write_text("initial commit")
    subprocess.run(["git", "add", "README.md"], cwd=repo_path, check=True)
    subprocess.run(["git", "commit", "-m", "Initial commit"], cwd=repo_path, check=True, capture_output=True)
    return repo_path
