"""Environment resolution policies.

Purpose
-------
Implement the :class:`lib_config_source.application.ports.LocationResolver`
and :class:`lib_config_source.application.ports.PathResolver` protocols plus
the :class:`EnvironmentResolver` that composes them.

Contents
--------
* :data:`DEFAULT_LOCATION` / :data:`DEFAULT_DELIMITER` – policy constants.
* :class:`FirstTokenLocationResolver` – first token selects the location.
* :class:`FixedLocationResolver` – single-location convention.
* :class:`AllButFirstTokenPathResolver` – remaining tokens form the path.
* :class:`FullNamePathResolver` – the whole name is the path.
* :class:`EnvironmentResolver` – validates and combines both halves.

System Role
-----------
Called first on every query by
:class:`lib_config_source.application.source.EnvironmentConfigurationSource`.
Alternative conventions are plugged in by passing different halves; nothing
downstream changes.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from ...application.ports import LocationResolver, PathResolver
from ...domain.environment import Environment, ResolvedLocation, as_environment
from ...domain.errors import ResolutionError
from ...observability import log_debug

#: Location used when the environment name is empty.
DEFAULT_LOCATION = "master"
#: Token delimiter used by the default policies.
DEFAULT_DELIMITER = "/"


class FirstTokenLocationResolver:
    """Use the first token of the environment name as the location.

    Examples
    --------
    >>> FirstTokenLocationResolver().location_for(Environment("prod/eu"))
    'prod'
    >>> FirstTokenLocationResolver().location_for(Environment("  "))
    'master'
    """

    def __init__(self, *, default_location: str = DEFAULT_LOCATION, delimiter: str = DEFAULT_DELIMITER) -> None:
        self.default_location = default_location
        self.delimiter = delimiter

    def location_for(self, environment: Environment) -> str:
        if not environment.name.strip():
            return self.default_location
        return environment.tokens(self.delimiter)[0]

    def __repr__(self) -> str:
        return f"FirstTokenLocationResolver(default_location={self.default_location!r}, delimiter={self.delimiter!r})"


class FixedLocationResolver:
    """Resolve every environment to the same location."""

    def __init__(self, location: str = DEFAULT_LOCATION) -> None:
        self.location = location

    def location_for(self, environment: Environment) -> str:
        return self.location

    def __repr__(self) -> str:
        return f"FixedLocationResolver({self.location!r})"


class AllButFirstTokenPathResolver:
    """Rejoin every token after the first one into the relative path.

    Examples
    --------
    >>> AllButFirstTokenPathResolver().path_for(Environment("branchA/dir/file"))
    'dir/file'
    >>> AllButFirstTokenPathResolver().path_for(Environment("branchA"))
    ''
    """

    def __init__(self, *, delimiter: str = DEFAULT_DELIMITER) -> None:
        self.delimiter = delimiter

    def path_for(self, environment: Environment) -> str:
        return "/".join(environment.tokens(self.delimiter)[1:])

    def __repr__(self) -> str:
        return f"AllButFirstTokenPathResolver(delimiter={self.delimiter!r})"


class FullNamePathResolver:
    """Treat the whole environment name as the relative path."""

    def path_for(self, environment: Environment) -> str:
        return environment.name.strip()

    def __repr__(self) -> str:
        return "FullNamePathResolver()"


class EnvironmentResolver:
    """Combine a location policy and a path policy into one resolver.

    Why
    ----
    The backend needs a location token and the discovery step needs a
    directory; keeping both policies injectable lets callers adopt branch
    based, single-location, or multi-directory layouts.

    What
    ----
    Normalises the request into an :class:`Environment`, asks both halves, and
    rejects results that cannot address a directory inside the location.

    Examples
    --------
    >>> EnvironmentResolver().resolve("branchA/dir/file")
    ResolvedLocation(location='branchA', path='dir/file')
    >>> EnvironmentResolver().resolve("")
    ResolvedLocation(location='master', path='')
    """

    def __init__(
        self,
        location_resolver: LocationResolver | None = None,
        path_resolver: PathResolver | None = None,
    ) -> None:
        self.location_resolver = location_resolver or FirstTokenLocationResolver()
        self.path_resolver = path_resolver or AllButFirstTokenPathResolver()

    def resolve(self, environment: Environment | str) -> ResolvedLocation:
        """Return the :class:`ResolvedLocation` for *environment*.

        Raises
        ------
        ResolutionError
            When the location token is empty, or the path is absolute or
            climbs out of the location with ``..``.
        """

        env = as_environment(environment)
        location = self.location_resolver.location_for(env)
        path = self.path_resolver.path_for(env)
        if not isinstance(location, str) or not isinstance(path, str):
            raise ResolutionError(f"Resolver returned non-string components for environment {env.name!r}")
        if not location.strip():
            raise ResolutionError(f"Environment {env.name!r} does not name a location")
        _ensure_contained(location, env.name)
        if path:
            _ensure_contained(path, env.name)
        resolved = ResolvedLocation(location=location, path=path)
        log_debug("environment_resolved", environment=env.name, path=path or None, location=location)
        return resolved

    def __repr__(self) -> str:
        return f"EnvironmentResolver({self.location_resolver!r}, {self.path_resolver!r})"


def _ensure_contained(value: str, name: str) -> None:
    """Reject absolute values and ``..`` segments."""

    candidate = PurePosixPath(value.replace("\\", "/"))
    if candidate.is_absolute() or ".." in candidate.parts:
        raise ResolutionError(f"Environment {name!r} resolves outside its location: {value!r}")
