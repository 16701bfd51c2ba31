"""Local directory backend.

Purpose
-------
Implement the :class:`lib_config_source.application.ports.Backend` protocol
for a configuration tree that already lives on disk, laid out as
``<root>/<location>/<relative path>/<files>``.

System Role
-----------
The simplest backend: nothing to acquire or release, so :meth:`init`,
:meth:`refresh` and :meth:`teardown` only log. Useful for deployments that
sync the tree by other means and for tests.
"""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from pathlib import Path

from ...observability import log_debug


class DirectoryBackend:
    """Serve location directories below a fixed *root*.

    Parameters
    ----------
    root:
        Base directory. It may not exist; queries then return empty
        snapshots.
    use_location:
        When ``False`` the location token is ignored and every query reads
        from *root* directly (single-location layout).

    Examples
    --------
    >>> backend = DirectoryBackend("/srv/config")
    >>> backend.root_directory_for("prod").as_posix()
    '/srv/config/prod'
    >>> DirectoryBackend("/srv/config", use_location=False).root_directory_for("prod").as_posix()
    '/srv/config'
    """

    def __init__(self, root: str | Path, *, use_location: bool = True) -> None:
        self.root = Path(root)
        self.use_location = use_location

    def init(self) -> None:
        log_debug("backend_initialised", environment=None, path=str(self.root), backend="directory")

    def teardown(self) -> None:
        log_debug("backend_closed", environment=None, path=str(self.root), backend="directory")

    def refresh(self) -> None:
        """Nothing to fetch; files are read straight from disk on each query."""

    def root_directory_for(self, location: str) -> Path:
        if not self.use_location:
            return self.root
        return self.root / location

    def hold(self) -> AbstractContextManager[object]:
        return nullcontext()

    def __repr__(self) -> str:
        return f"DirectoryBackend({str(self.root)!r}, use_location={self.use_location!r})"
