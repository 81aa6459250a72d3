# src/watchrun/search.py

"""
Default test index and search source: test files found by walking the root
directory, selected by path regex or by relation to changed files.
"""

import os
import re
from collections.abc import Iterable, Sequence
from pathlib import Path

import structlog

from watchrun.config import WatchrunConfig
from watchrun.protocols import SearchResult
from watchrun.results import RunContext
from watchrun.scm import find_changed_files
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("search")


def find_test_files(root_dir: Path, test_regex: str, ignore_dirs: Iterable[str]) -> tuple[Path, ...]:
    """Walks `root_dir` and returns every file whose relative posix path matches `test_regex`."""
    regex = re.compile(test_regex)
    ignored = set(ignore_dirs)
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root_dir):
        dirnames[:] = sorted(d for d in dirnames if d not in ignored)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if regex.search(path.relative_to(root_dir).as_posix()):
                found.append(path.resolve())
    return tuple(found)


def build_context(
    config: WatchrunConfig,
    changed_paths: Sequence[Path] = (),
    use_scm: bool = True,
) -> RunContext:
    """Indexes the project and records which files changed.

    Changed files are the union of the paths reported by the file monitor and,
    when `use_scm` is set, the uncommitted changes git knows about.
    """
    root_dir = config.root_dir.resolve()
    test_files = find_test_files(root_dir, config.test_regex, config.ignore_dirs)
    changed = {Path(p).resolve() for p in changed_paths}
    if use_scm:
        changed |= find_changed_files(root_dir) or frozenset()
    log.debug("Test index built", root_dir=str(root_dir), test_files=len(test_files), changed=len(changed))
    return RunContext(root_dir=root_dir, test_files=test_files, changed_files=changed)


def _module_stem(test_file: Path) -> str:
    stem = test_file.stem
    if stem.startswith("test_"):
        return stem[len("test_") :]
    if stem.endswith("_test"):
        return stem[: -len("_test")]
    return stem


class FileSearchSource:
    """SearchSource over the test files of a RunContext."""

    def __init__(self, context: RunContext):
        self.context = context

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.context.root_dir).as_posix()
        except ValueError:
            return path.as_posix()

    def find_matching_tests(self, pattern: str) -> SearchResult:
        """Test files whose relative path matches `pattern`, case-insensitively."""
        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            log.warning("Invalid test path pattern, nothing matches", pattern=pattern, error=str(e))
            return SearchResult()
        return SearchResult(path for path in self.context.test_files if regex.search(self._relative(path)))

    def find_related_tests(self, changed_paths: Sequence[Path]) -> SearchResult:
        """
        Changed test files themselves, plus test files named after a changed
        module (`test_foo.py` or `foo_test.py` for `foo.py`).
        """
        changed = {Path(p).resolve() for p in changed_paths}
        changed_stems = {p.stem for p in changed if p.suffix == ".py"}
        related = [
            path
            for path in self.context.test_files
            if path in changed or _module_stem(path) in changed_stems
        ]
        return SearchResult(related)

    def all_tests(self) -> SearchResult:
        return SearchResult(self.context.test_files)


# 🔼⚙️
