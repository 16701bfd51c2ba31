"""Configuration file discovery policies.

Purpose
-------
Implement the :class:`lib_config_source.application.ports.ConfigFilesProvider`
protocol. Each provider documents the order it returns files in, because that
order is the merge precedence: later files override earlier ones.

Contents
--------
* :data:`DEFAULT_CONFIG_FILE` – file name used by the default policy.
* :class:`DefaultConfigFilesProvider` – a single fixed file name.
* :class:`StaticConfigFilesProvider` – an explicit list of file names.
* :class:`DirectoryScanConfigFilesProvider` – sorted directory scan, in the
  spirit of ``config.d`` directories.
* :func:`_is_file` – absence-tolerant probe that surfaces other I/O errors.

System Role
-----------
Invoked by the configuration source with the root directory computed from
the backend location and the resolved relative path. A missing root or
missing files yield ``[]`` so the query returns an empty snapshot.
"""

from __future__ import annotations

import errno
import os
import stat
from pathlib import Path
from typing import Iterable, Iterator

from ...domain.errors import DiscoveryError
from ...observability import log_debug

#: File name understood by :class:`DefaultConfigFilesProvider`.
DEFAULT_CONFIG_FILE = "application.properties"

#: ``stat``/``scandir`` failures that mean "not there".
_ABSENT_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR})


class DefaultConfigFilesProvider:
    """Return :data:`DEFAULT_CONFIG_FILE` (or *filename*) when it exists.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> DefaultConfigFilesProvider().get_config_files(root)
    []
    >>> _ = (root / "application.properties").write_text("a=1", encoding="utf-8")
    >>> DefaultConfigFilesProvider().get_config_files(root)
    ['application.properties']
    >>> tmp.cleanup()
    """

    def __init__(self, filename: str = DEFAULT_CONFIG_FILE) -> None:
        self.filename = filename

    def get_config_files(self, root: Path) -> list[str]:
        return [self.filename] if _is_file(Path(root) / self.filename) else []

    def __repr__(self) -> str:
        return f"DefaultConfigFilesProvider({self.filename!r})"


class StaticConfigFilesProvider:
    """Return the existing files among *filenames*, in the order given.

    Later names override earlier ones, so list the general file first and the
    specific override last.
    """

    def __init__(self, *filenames: str) -> None:
        if not filenames:
            raise ValueError("StaticConfigFilesProvider needs at least one file name")
        self.filenames = tuple(filenames)

    def get_config_files(self, root: Path) -> list[str]:
        base = Path(root)
        found = [name for name in self.filenames if _is_file(base / name)]
        log_debug("files_discovered", environment=None, path=str(base), count=len(found))
        return found

    def __repr__(self) -> str:
        return f"StaticConfigFilesProvider{self.filenames!r}"


class DirectoryScanConfigFilesProvider:
    """Scan *root* and return files sorted by their relative POSIX path.

    Why
    ----
    Drop-in directories (``10-base.yaml``, ``90-local.yaml``) let operators
    layer overrides without editing a shared file.

    What
    ----
    Lexicographic order of the relative path defines precedence; the last file
    wins. *suffixes* (literal, without the dot) restricts the scan; ``None``
    accepts every file. Hidden files are skipped.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> for name in ("90-local.yaml", "10-base.yaml", "notes.txt"):
    ...     _ = (root / name).write_text("a: 1", encoding="utf-8")
    >>> DirectoryScanConfigFilesProvider(suffixes=("yaml",)).get_config_files(root)
    ['10-base.yaml', '90-local.yaml']
    >>> tmp.cleanup()
    """

    def __init__(self, *, suffixes: Iterable[str] | None = None, recursive: bool = False) -> None:
        self.suffixes = frozenset(suffixes) if suffixes is not None else None
        self.recursive = recursive

    def get_config_files(self, root: Path) -> list[str]:
        base = Path(root)
        found = sorted(relative for relative in self._scan(base, "") if self._accepts(relative))
        log_debug("files_discovered", environment=None, path=str(base), count=len(found))
        return found

    def _accepts(self, relative: str) -> bool:
        if self.suffixes is None:
            return True
        name = relative.rsplit("/", 1)[-1]
        _, dot, suffix = name.rpartition(".")
        return bool(dot) and suffix in self.suffixes

    def _scan(self, directory: Path, prefix: str) -> Iterator[str]:
        try:
            with os.scandir(directory) as entries:
                listing = list(entries)
        except OSError as exc:
            if exc.errno in _ABSENT_ERRNOS:
                return
            raise DiscoveryError(f"Cannot list configuration directory {directory}: {exc}") from exc
        for entry in listing:
            if entry.name.startswith("."):
                continue
            relative = f"{prefix}{entry.name}"
            if _is_file(Path(entry.path)):
                yield relative
            elif self.recursive and entry.is_dir():
                yield from self._scan(Path(entry.path), f"{relative}/")

    def __repr__(self) -> str:
        suffixes = sorted(self.suffixes) if self.suffixes is not None else None
        return f"DirectoryScanConfigFilesProvider(suffixes={suffixes!r}, recursive={self.recursive!r})"


def _is_file(path: Path) -> bool:
    """Return whether *path* is a regular file; absence is ``False``.

    Raises
    ------
    DiscoveryError
        For failures other than absence, such as permission errors.
    """

    try:
        mode = path.stat().st_mode
    except OSError as exc:
        if exc.errno in _ABSENT_ERRNOS:
            return False
        raise DiscoveryError(f"Cannot access configuration path {path}: {exc}") from exc
    return stat.S_ISREG(mode)
