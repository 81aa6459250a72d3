# src/watchrun/scm.py

"""
Changed-file detection backed by pygit2.
"""

from pathlib import Path

import pygit2
import structlog
from pygit2.enums import FileStatus

from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("scm")


def _get_repo(working_dir: Path) -> pygit2.Repository | None:
    repo_path = pygit2.discover_repository(str(working_dir))
    if repo_path is None:
        return None
    repo = pygit2.Repository(repo_path)
    if repo.is_bare:
        return None
    return repo


def find_changed_files(working_dir: Path) -> frozenset[Path] | None:
    """
    Files with uncommitted changes (staged, unstaged or untracked) in the
    repository containing `working_dir`.

    Returns None when `working_dir` is not inside a usable git work tree.
    """
    try:
        repo = _get_repo(working_dir)
    except pygit2.GitError as e:
        log.warning("Failed to open git repository", path=str(working_dir), error=str(e))
        return None
    if repo is None:
        log.debug("No git work tree found", path=str(working_dir))
        return None

    workdir = Path(repo.workdir)
    changed = frozenset(
        (workdir / path).resolve()
        for path, flags in repo.status().items()
        if flags != FileStatus.CURRENT and not flags & FileStatus.IGNORED
    )
    log.debug("Collected changed files from git", count=len(changed))
    return changed


# 🔼⚙️
