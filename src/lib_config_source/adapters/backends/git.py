"""Git repository backend.

Purpose
-------
Implement the :class:`lib_config_source.application.ports.Backend` protocol
on top of a git repository: branches are locations, and the files of a
branch are served from a local working tree.

Contents
--------
* :data:`DEFAULT_TMP_REPO_PREFIX` – prefix of the temporary clone directory.
* :class:`GitBackend` – clone on :meth:`GitBackend.init`, one detached
  worktree per location, fetch on :meth:`GitBackend.refresh`, cleanup on
  :meth:`GitBackend.teardown`.
* :func:`_worktree_name` – filesystem-safe directory name for a location.

System Role
-----------
Transport and authentication are delegated to the ``git`` executable; the
backend passes credentials (an SSH key, extra environment variables) to it
explicitly per command and never touches process-wide state. All tree
mutations and reads are serialised through one re-entrant lock exposed via
:meth:`GitBackend.hold`, so a query never observes a half-updated tree.
"""

from __future__ import annotations

import hashlib
import os
import re
import shlex
import shutil
import subprocess
import tempfile
import threading
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Mapping

from ...domain.errors import BackendError
from ...observability import log_debug, log_error, log_info

#: Prefix of the temporary directory holding the clone.
DEFAULT_TMP_REPO_PREFIX = "lib-config-source-git-repository"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class GitBackend:
    """Serve branches of *repository_uri* from local worktrees.

    Why
    ----
    Configuration kept in git gets history, review, and per-environment
    branches for free; the library only needs a stable directory per branch.

    What
    ----
    A location names a branch (or any other revision). Unlike a missing
    directory, a location the repository does not know raises
    :class:`BackendError` from :meth:`root_directory_for` rather than reading
    as empty configuration. Missing paths inside a known branch still yield
    empty snapshots.

    Parameters
    ----------
    repository_uri:
        Anything ``git clone`` accepts (URL, SSH address, local path).
    tmp_path:
        Directory receiving the temporary clone. Defaults to
        :func:`tempfile.gettempdir`.
    tmp_repo_prefix:
        Prefix of the clone directory name.
    remote:
        Remote name used for branch lookups and fetches.
    git:
        Git executable.
    ssh_key:
        Private key passed to ``ssh`` via ``GIT_SSH_COMMAND``.
    environ:
        Extra environment variables for every git invocation (for example a
        credential helper configuration).
    """

    def __init__(
        self,
        repository_uri: str,
        *,
        tmp_path: str | Path | None = None,
        tmp_repo_prefix: str = DEFAULT_TMP_REPO_PREFIX,
        remote: str = "origin",
        git: str = "git",
        ssh_key: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        if not repository_uri:
            raise ValueError("repository_uri must not be empty")
        self.repository_uri = repository_uri
        self.tmp_path = Path(tmp_path) if tmp_path is not None else Path(tempfile.gettempdir())
        self.tmp_repo_prefix = tmp_repo_prefix
        self.remote = remote
        self.git = git
        self.ssh_key = Path(ssh_key) if ssh_key is not None else None
        self.environ = dict(environ or {})
        self._lock = threading.RLock()
        self._workdir: Path | None = None
        self._worktrees: dict[str, Path] = {}

    @property
    def workdir(self) -> Path | None:
        """Directory of the current clone, ``None`` outside init/teardown."""

        return self._workdir

    def init(self) -> None:
        """Clone the repository into a fresh temporary directory.

        Raises
        ------
        BackendError
            When the backend is already initialised or ``git clone`` fails.
        """

        with self._lock:
            if self._workdir is not None:
                raise BackendError(f"Repository {self.repository_uri} is already cloned at {self._workdir}")
            self.tmp_path.mkdir(parents=True, exist_ok=True)
            workdir = Path(tempfile.mkdtemp(prefix=self.tmp_repo_prefix, dir=self.tmp_path))
            try:
                self._run("clone", "--quiet", "--no-checkout", "--origin", self.remote, self.repository_uri, str(workdir / "repository"))
            except BackendError:
                shutil.rmtree(workdir, ignore_errors=True)
                raise
            self._workdir = workdir
            log_info("backend_initialised", environment=None, path=str(workdir), backend="git", uri=self.repository_uri)

    def teardown(self) -> None:
        """Remove the clone and every worktree."""

        with self._lock:
            workdir = self._workdir
            self._workdir = None
            self._worktrees = {}
            if workdir is None:
                return
            try:
                shutil.rmtree(workdir)
            except OSError as exc:
                log_error("backend_cleanup_failed", environment=None, path=str(workdir), error=str(exc))
                raise BackendError(f"Cannot remove repository clone {workdir}: {exc}") from exc
            log_info("backend_closed", environment=None, path=str(workdir), backend="git")

    def refresh(self) -> None:
        """Fetch the remote and move every checked-out worktree to the new tip."""

        with self._lock:
            clone = self._clone_dir()
            self._run("-C", str(clone), "fetch", "--quiet", "--prune", self.remote)
            for location, tree in self._worktrees.items():
                revision = self._revision_for(location)
                self._run("-C", str(tree), "checkout", "--quiet", "--force", "--detach", revision)
            log_info("backend_refreshed", environment=None, path=str(clone), worktrees=len(self._worktrees))

    def root_directory_for(self, location: str) -> Path:
        """Return the worktree for *location*, creating it on first use.

        Raises
        ------
        BackendError
            When *location* is neither a remote branch nor another revision
            known to the clone.
        """

        with self._lock:
            tree = self._worktrees.get(location)
            if tree is not None:
                return tree
            clone = self._clone_dir()
            revision = self._revision_for(location)
            tree = clone.parent / "worktrees" / _worktree_name(location)
            self._run("-C", str(clone), "worktree", "add", "--quiet", "--force", "--detach", str(tree), revision)
            self._worktrees[location] = tree
            return tree

    def hold(self) -> AbstractContextManager[object]:
        return self._lock

    def _clone_dir(self) -> Path:
        if self._workdir is None:
            raise BackendError(f"Repository {self.repository_uri} is not cloned; call init() first")
        return self._workdir / "repository"

    def _revision_for(self, location: str) -> str:
        clone = self._clone_dir()
        for candidate in (f"{self.remote}/{location}", location):
            if self._verify(clone, candidate):
                return candidate
        raise BackendError(f"Unknown location {location!r} in repository {self.repository_uri}")

    def _verify(self, clone: Path, revision: str) -> bool:
        result = self._invoke("-C", str(clone), "rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}")
        return result.returncode == 0

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        result = self._invoke(*args)
        if result.returncode != 0:
            message = result.stderr.strip() or result.stdout.strip()
            log_error("backend_command_failed", environment=None, path=None, command=args[:3], error=message)
            raise BackendError(f"git {' '.join(args)} failed with exit code {result.returncode}: {message}")
        return result

    def _invoke(self, *args: str) -> subprocess.CompletedProcess[str]:
        log_debug("backend_command", environment=None, path=None, command=list(args))
        try:
            return subprocess.run(
                [self.git, *args],
                capture_output=True,
                text=True,
                env=self._command_env(),
                check=False,
            )
        except OSError as exc:
            raise BackendError(f"Cannot run {self.git}: {exc}") from exc

    def _command_env(self) -> dict[str, str]:
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", **self.environ}
        if self.ssh_key is not None:
            env["GIT_SSH_COMMAND"] = f"ssh -i {shlex.quote(str(self.ssh_key))} -o IdentitiesOnly=yes"
        return env

    def __repr__(self) -> str:
        return f"GitBackend({self.repository_uri!r}, tmp_path={str(self.tmp_path)!r}, remote={self.remote!r})"


def _worktree_name(location: str) -> str:
    """Return a directory name for *location* that is unique and filesystem safe.

    Examples
    --------
    >>> _worktree_name("feature/login").startswith("feature_login-")
    True
    """

    digest = hashlib.sha1(location.encode("utf-8")).hexdigest()[:8]
    return f"{_UNSAFE_CHARS.sub('_', location)}-{digest}"
