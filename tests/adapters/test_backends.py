from __future__ import annotations

from pathlib import Path

import pytest

from lib_config_source.adapters.backends.directory import DirectoryBackend
from lib_config_source.adapters.backends.git import DEFAULT_TMP_REPO_PREFIX, GitBackend, _worktree_name
from lib_config_source.domain.errors import BackendError
from tests.support import commit_files, create_git_repository, git, requires_git


def test_directory_backend_locations(tmp_path: Path) -> None:
    backend = DirectoryBackend(tmp_path)
    backend.init()
    assert backend.root_directory_for("prod") == tmp_path / "prod"
    with backend.hold():
        backend.refresh()
    backend.teardown()


def test_directory_backend_single_location(tmp_path: Path) -> None:
    assert DirectoryBackend(tmp_path, use_location=False).root_directory_for("prod") == tmp_path


def test_worktree_names_are_distinct_and_safe() -> None:
    first = _worktree_name("feature/login")
    second = _worktree_name("feature_login")
    assert "/" not in first
    assert first != second


def test_git_backend_requires_uri() -> None:
    with pytest.raises(ValueError):
        GitBackend("")


def test_git_backend_rejects_use_before_init(tmp_path: Path) -> None:
    backend = GitBackend(str(tmp_path / "nowhere"), tmp_path=tmp_path)
    assert backend.workdir is None
    with pytest.raises(BackendError, match="not cloned"):
        backend.root_directory_for("master")
    backend.teardown()


def test_git_backend_ssh_key_sets_command(tmp_path: Path) -> None:
    key = tmp_path / "id ed25519"
    env = GitBackend("git@example.invalid:config.git", ssh_key=key, environ={"EXTRA": "1"})._command_env()
    assert env["GIT_SSH_COMMAND"].startswith("ssh -i ")
    assert "'" in env["GIT_SSH_COMMAND"]
    assert env["GIT_TERMINAL_PROMPT"] == "0"
    assert env["EXTRA"] == "1"


def test_git_backend_reports_missing_executable(tmp_path: Path) -> None:
    backend = GitBackend(str(tmp_path), tmp_path=tmp_path / "clones", git="definitely-not-git-executable")
    with pytest.raises(BackendError, match="Cannot run"):
        backend.init()
    assert list((tmp_path / "clones").iterdir()) == []


@requires_git
def test_git_backend_serves_branches(tmp_path: Path) -> None:
    origin = create_git_repository(
        tmp_path,
        {
            "master": {"application.properties": "env=master\n"},
            "prod": {"eu/application.properties": "env=prod-eu\n"},
        },
    )
    backend = GitBackend(str(origin), tmp_path=tmp_path / "clones")
    backend.init()
    try:
        workdir = backend.workdir
        assert workdir is not None and workdir.name.startswith(DEFAULT_TMP_REPO_PREFIX)
        master = backend.root_directory_for("master")
        prod = backend.root_directory_for("prod")
        assert (master / "application.properties").read_text(encoding="utf-8") == "env=master\n"
        assert (prod / "eu" / "application.properties").read_text(encoding="utf-8") == "env=prod-eu\n"
        assert backend.root_directory_for("prod") == prod
        with pytest.raises(BackendError, match="Unknown location"):
            backend.root_directory_for("does-not-exist")
    finally:
        backend.teardown()
    assert not workdir.exists()
    assert backend.workdir is None


@requires_git
def test_git_backend_refresh_moves_worktrees(tmp_path: Path) -> None:
    origin = create_git_repository(tmp_path, {"master": {"application.properties": "version=1\n"}})
    backend = GitBackend(str(origin), tmp_path=tmp_path / "clones")
    backend.init()
    try:
        tree = backend.root_directory_for("master")
        git(origin, "checkout", "--quiet", "master")
        commit_files(origin, {"application.properties": "version=2\n"}, message="bump")
        assert (tree / "application.properties").read_text(encoding="utf-8") == "version=1\n"
        backend.refresh()
        assert (tree / "application.properties").read_text(encoding="utf-8") == "version=2\n"
    finally:
        backend.teardown()


@requires_git
def test_git_backend_init_twice_fails(tmp_path: Path) -> None:
    origin = create_git_repository(tmp_path, {"master": {"application.properties": "a=1\n"}})
    backend = GitBackend(str(origin), tmp_path=tmp_path / "clones")
    backend.init()
    try:
        with pytest.raises(BackendError, match="already cloned"):
            backend.init()
    finally:
        backend.teardown()


@requires_git
def test_git_backend_clone_failure_cleans_up(tmp_path: Path) -> None:
    clones = tmp_path / "clones"
    backend = GitBackend(str(tmp_path / "missing-repository"), tmp_path=clones)
    with pytest.raises(BackendError):
        backend.init()
    assert list(clones.iterdir()) == []
