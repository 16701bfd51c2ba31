"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts strategies and backends must satisfy so the
configuration source can orchestrate them without depending on concrete
implementations.

Contents
--------
* :class:`LocationResolver` / :class:`PathResolver` – the two halves of an
  environment decomposition policy.
* :class:`EnvironmentResolverPort` – full ``environment -> location`` policy.
* :class:`ConfigFilesProvider` – yields candidate files below a root.
* :class:`PropertiesProvider` – parses a byte stream into a flat mapping.
* :class:`ProviderSelector` – picks the provider for a file name.
* :class:`Backend` – owns the external resource (a local tree, a clone).
* :class:`ConfigurationSource` – public facade contract.

System Role
-----------
The protocols are ``runtime_checkable`` so
:func:`lib_config_source.core.source_settings` can validate injected
strategies at construction time.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

from ..domain.config import ConfigSnapshot
from ..domain.environment import Environment, ResolvedLocation


@runtime_checkable
class LocationResolver(Protocol):
    """Select the backend location (for example a branch) for an environment."""

    def location_for(self, environment: Environment) -> str:
        """Return the location token for *environment*."""


@runtime_checkable
class PathResolver(Protocol):
    """Select the relative path inside a backend location for an environment."""

    def path_for(self, environment: Environment) -> str:
        """Return the ``/`` separated relative path for *environment*."""


@runtime_checkable
class EnvironmentResolverPort(Protocol):
    """Decompose an environment into a :class:`ResolvedLocation`."""

    def resolve(self, environment: Environment | str) -> ResolvedLocation:
        """Return the location and relative path for *environment*."""


@runtime_checkable
class ConfigFilesProvider(Protocol):
    """Enumerate configuration files below a root directory.

    The order of the returned paths is the override precedence: later files
    win. Implementations must document the order they produce.
    """

    def get_config_files(self, root: Path) -> list[str]:
        """Return POSIX relative paths; an absent *root* yields ``[]``."""


@runtime_checkable
class PropertiesProvider(Protocol):
    """Parse one configuration format into a flat string mapping."""

    def get_properties(self, stream: BinaryIO) -> dict[str, str]:
        """Read *stream* and return dotted keys, or raise ``ParseError``."""


@runtime_checkable
class ProviderSelector(Protocol):
    """Choose the :class:`PropertiesProvider` for a discovered file name."""

    def get_provider(self, filename: str) -> PropertiesProvider:
        """Return the provider for *filename*; never fails for unknown suffixes."""


@runtime_checkable
class Backend(Protocol):
    """Resource provider holding the tree configuration files are read from.

    Methods
    -------
    :meth:`init` / :meth:`teardown`
        Acquire and release the resource, once per instance.
    :meth:`refresh`
        Bring the tree up to date (for example ``git fetch``). Must not run
        concurrently with a reader holding :meth:`hold`.
    :meth:`root_directory_for`
        Directory for a location token; it may not exist.
    :meth:`hold`
        Context manager held for the duration of a query so the tree stays
        unchanged while it is read.
    """

    def init(self) -> None: ...

    def teardown(self) -> None: ...

    def refresh(self) -> None: ...

    def root_directory_for(self, location: str) -> Path: ...

    def hold(self) -> AbstractContextManager[object]: ...


@runtime_checkable
class ConfigurationSource(Protocol):
    """Public facade returning snapshots per environment."""

    def init(self) -> None: ...

    def get_configuration(self, environment: Environment | str | None = None) -> ConfigSnapshot: ...

    def refresh(self) -> None: ...

    def teardown(self) -> None: ...
