"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by adapters, the merge engine, the
configuration source facade, and consuming applications. The hierarchy lives
in the domain layer so adapters may depend on it without creating cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all library failures.
* :class:`ResolutionError` – an environment cannot be decomposed into a
  backend location and a relative path.
* :class:`DiscoveryError` – filesystem access failed for a reason other than
  absence.
* :class:`ParseError` – a configuration file is malformed for its provider.
* :class:`PropertyLookupError` – a key is absent or not coercible.
* :class:`LifecycleError` – a source was used outside its init/teardown
  window.
* :class:`BackendError` – the backend collaborator failed to prepare or
  refresh its tree.

System Role
-----------
Every error is surfaced to the caller unchanged; nothing in the library
retries or downgrades them to log lines. Callers catch :class:`ConfigError`
to handle all library failures uniformly.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_config_source``."""


class ResolutionError(ConfigError):
    """Raised when the active policy cannot decompose an environment.

    Typical Sources
    ---------------
    :class:`lib_config_source.adapters.resolvers.default.EnvironmentResolver`
    rejecting empty location tokens or paths that would escape the backend
    location.
    """


class DiscoveryError(ConfigError):
    """Raised when discovery or file access fails for reasons other than absence.

    Why
    ----
    Missing directories and files mean "empty configuration"; permission or
    I/O failures must not be mistaken for that.
    """


class ParseError(ConfigError):
    """Raised when file content is malformed for its selected provider.

    Why
    ----
    Distinguish malformed content from missing files and abort the merge as a
    whole.

    Attributes
    ----------
    path:
        Offending file path when known. Providers parse anonymous byte streams
        and leave it ``None``; the merge engine re-raises with the path set.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PropertyLookupError(ConfigError, LookupError):
    """Raised when a key is absent or cannot be coerced to the requested type.

    Inherits from :class:`LookupError` as well so ``except LookupError`` in
    calling code keeps working.
    """

    def __init__(self, message: str, *, key: str) -> None:
        super().__init__(message)
        self.key = key


class LifecycleError(ConfigError):
    """Raised when a source is used before ``init()`` or after ``teardown()``."""


class BackendError(ConfigError):
    """Raised when the backend cannot materialise or refresh its tree.

    Retrying is left to the caller; the library never retries internally.
    """
