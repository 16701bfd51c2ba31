"""Shared fixtures for building configuration trees in tests.

:class:`ConfigTree` writes files below ``<root>/<location>/<path>`` so tests
read like the layout they exercise. :func:`create_git_repository` turns such
a layout into a git repository with one branch per location.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


@dataclass
class ConfigTree:
    """Directory-backed configuration tree rooted at :attr:`root`."""

    root: Path

    def write(self, environment_dir: str, relative: str, content: str) -> Path:
        """Write *content* to ``root/environment_dir/relative`` and return the path."""

        target = self.root / environment_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target

    def write_bytes(self, environment_dir: str, relative: str, content: bytes) -> Path:
        target = self.root / environment_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return target


def create_config_tree(tmp_path: Path) -> ConfigTree:
    root = tmp_path / "config"
    root.mkdir()
    return ConfigTree(root=root)


def create_git_repository(tmp_path: Path, branches: dict[str, dict[str, str]]) -> Path:
    """Create a repository with one commit per branch holding *branches[name]* files.

    The first branch in *branches* is created from the initial commit; every
    other branch starts empty (an orphan) so branches never share files.
    """

    repository = tmp_path / "origin"
    repository.mkdir()
    git(repository, "init", "--quiet")
    for index, (branch, files) in enumerate(branches.items()):
        if index == 0:
            git(repository, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
        else:
            git(repository, "checkout", "--quiet", "--orphan", branch)
            git(repository, "rm", "-r", "--quiet", "--cached", "--ignore-unmatch", ".")
            for child in repository.iterdir():
                if child.name == ".git":
                    continue
                if child.is_dir():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        commit_files(repository, files, message=f"configure {branch}")
    return repository


def commit_files(repository: Path, files: dict[str, str], *, message: str) -> None:
    """Write *files* into the checked-out branch of *repository* and commit them."""

    for relative, content in files.items():
        target = repository / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    git(repository, "add", "--all")
    git(repository, "commit", "--quiet", "--allow-empty", "-m", message)


def git(repository: Path, *args: str) -> str:
    env = {
        **os.environ,
        "GIT_AUTHOR_NAME": "Config Tests",
        "GIT_AUTHOR_EMAIL": "tests@example.invalid",
        "GIT_COMMITTER_NAME": "Config Tests",
        "GIT_COMMITTER_EMAIL": "tests@example.invalid",
    }
    result = subprocess.run(
        ["git", "-C", str(repository), *args],
        capture_output=True,
        text=True,
        env=env,
        check=True,
    )
    return result.stdout


__all__ = [
    "ConfigTree",
    "commit_files",
    "create_config_tree",
    "create_git_repository",
    "git",
    "requires_git",
]
