"""Composition root for ``lib_config_source``.

Purpose
-------
Wire backends, resolution policies, discovery policies, and format providers
into ready-to-use configuration sources, and expose one-shot helpers for
scripts that only need a single snapshot.

Contents
--------
* :class:`SourceSettings` – explicit settings struct with defaulted fields.
* :func:`source_settings` – validating factory for :class:`SourceSettings`.
* :func:`build_source` – turns settings into an
  :class:`~lib_config_source.application.source.EnvironmentConfigurationSource`.
* :func:`directory_source` / :func:`git_source` – convenience builders.
* :func:`read_configuration` / :func:`read_configuration_raw` – init, query,
  teardown in one call.

System Role
-----------
The only module that knows about concrete adapters. Swap policies here (or
by passing overrides) without touching the query pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .adapters.backends.directory import DirectoryBackend
from .adapters.backends.git import GitBackend
from .adapters.files_providers.default import DefaultConfigFilesProvider
from .adapters.properties_providers.selector import default_selector
from .adapters.resolvers.default import EnvironmentResolver
from .application.ports import Backend, ConfigFilesProvider, EnvironmentResolverPort, ProviderSelector
from .application.source import EnvironmentConfigurationSource
from .domain.config import ConfigSnapshot, SourceInfo
from .domain.environment import Environment
from .observability import trace_scope

_OVERRIDABLE = frozenset({"resolver", "files_provider", "selector"})


@dataclass(frozen=True, slots=True)
class SourceSettings:
    """Everything an :class:`EnvironmentConfigurationSource` is built from.

    Attributes
    ----------
    backend:
        Resource provider (directory, git clone, ...).
    resolver:
        Environment decomposition policy; defaults to first token as location
        and the remaining tokens as path.
    files_provider:
        Discovery policy; defaults to the single ``application.properties``.
    selector:
        Suffix table; defaults to :func:`default_selector`.
    """

    backend: Backend
    resolver: EnvironmentResolverPort = field(default_factory=EnvironmentResolver)
    files_provider: ConfigFilesProvider = field(default_factory=DefaultConfigFilesProvider)
    selector: ProviderSelector = field(default_factory=default_selector)


def source_settings(backend: Backend, **overrides: Any) -> SourceSettings:
    """Return validated :class:`SourceSettings` for *backend*.

    Parameters
    ----------
    backend:
        Object implementing the backend protocol.
    overrides:
        Any of ``resolver``, ``files_provider``, ``selector``. ``None`` values
        keep the default.

    Raises
    ------
    TypeError
        When an unknown field is passed or a strategy does not implement its
        protocol.

    Examples
    --------
    >>> settings = source_settings(DirectoryBackend("/srv/config"))
    >>> type(settings.files_provider).__name__
    'DefaultConfigFilesProvider'
    >>> source_settings(DirectoryBackend("/srv/config"), resolver=object())
    Traceback (most recent call last):
    ...
    TypeError: resolver must implement EnvironmentResolverPort, got object
    """

    unknown = set(overrides) - _OVERRIDABLE
    if unknown:
        raise TypeError(f"Unknown source settings: {', '.join(sorted(unknown))}")
    _require(backend, Backend, "backend")
    fields = {name: value for name, value in overrides.items() if value is not None}
    if "resolver" in fields:
        _require(fields["resolver"], EnvironmentResolverPort, "resolver")
    if "files_provider" in fields:
        _require(fields["files_provider"], ConfigFilesProvider, "files_provider")
    if "selector" in fields:
        _require(fields["selector"], ProviderSelector, "selector")
    return SourceSettings(backend=backend, **fields)


def build_source(settings: SourceSettings) -> EnvironmentConfigurationSource:
    """Return a new (not yet initialised) source for *settings*."""

    return EnvironmentConfigurationSource(
        backend=settings.backend,
        resolver=settings.resolver,
        files_provider=settings.files_provider,
        selector=settings.selector,
    )


def directory_source(root: str | Path, *, use_location: bool = True, **overrides: Any) -> EnvironmentConfigurationSource:
    """Build a source reading ``<root>/<location>/<path>`` from local disk."""

    return build_source(source_settings(DirectoryBackend(root, use_location=use_location), **overrides))


def git_source(
    repository_uri: str,
    *,
    tmp_path: str | Path | None = None,
    tmp_repo_prefix: str | None = None,
    ssh_key: str | Path | None = None,
    **overrides: Any,
) -> EnvironmentConfigurationSource:
    """Build a source serving branches of a git repository.

    Strategy overrides are passed through to :func:`source_settings`.
    """

    backend_kwargs: dict[str, Any] = {"tmp_path": tmp_path, "ssh_key": ssh_key}
    if tmp_repo_prefix is not None:
        backend_kwargs["tmp_repo_prefix"] = tmp_repo_prefix
    return build_source(source_settings(GitBackend(repository_uri, **backend_kwargs), **overrides))


def read_configuration(
    root: str | Path,
    environment: Environment | str | None = None,
    **overrides: Any,
) -> ConfigSnapshot:
    """Return the snapshot for *environment* below the local directory *root*.

    Why
    ----
    Scripts and tests often need one snapshot and no lifecycle management.

    What
    ----
    Builds a :func:`directory_source`, initialises it, queries once, and
    tears it down again, even when the query fails. All log records of the
    call share one fresh trace id.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / "prod" / "payments"
    >>> _ = target.mkdir(parents=True)
    >>> _ = (target / "application.properties").write_text("timeout=30", encoding="utf-8")
    >>> read_configuration(tmp.name, "prod/payments").get_property("timeout", int)
    30
    >>> read_configuration(tmp.name, "staging").is_empty()
    True
    >>> tmp.cleanup()
    """

    source = directory_source(root, **overrides)
    with trace_scope(), source:
        return source.get_configuration(environment)


def read_configuration_raw(
    root: str | Path,
    environment: Environment | str | None = None,
    **overrides: Any,
) -> tuple[dict[str, str], dict[str, SourceInfo]]:
    """Return ``(data, provenance)`` as plain dictionaries.

    Useful for serialisation and tooling that does not want the
    :class:`~lib_config_source.domain.config.ConfigSnapshot` interface.
    """

    snapshot = read_configuration(root, environment, **overrides)
    return snapshot.as_dict(), snapshot.provenance()


def _require(value: object, protocol: type, name: str) -> None:
    if not isinstance(value, protocol):
        raise TypeError(f"{name} must implement {protocol.__name__}, got {type(value).__name__}")


__all__ = [
    "SourceSettings",
    "build_source",
    "directory_source",
    "git_source",
    "read_configuration",
    "read_configuration_raw",
    "source_settings",
]
