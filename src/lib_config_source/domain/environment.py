"""Environment value objects.

Purpose
-------
Model the opaque environment identifier callers pass to
:meth:`lib_config_source.application.source.EnvironmentConfigurationSource.get_configuration`
and the decomposition the resolver turns it into.

Contents
--------
* :class:`Environment` – immutable wrapper around the environment name.
* :class:`ResolvedLocation` – ``(location, path)`` pair produced by a resolver.
* :func:`as_environment` – normalises strings and environment-like objects.
* :data:`DEFAULT_ENVIRONMENT` – the empty environment.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ResolutionError


@dataclass(frozen=True, slots=True)
class Environment:
    """Immutable environment identifier.

    Examples
    --------
    >>> Environment("prod/eu/payments").tokens()
    ('prod', 'eu', 'payments')
    >>> Environment().tokens()
    ()
    """

    name: str = ""

    def tokens(self, delimiter: str = "/") -> tuple[str, ...]:
        """Split the name on *delimiter*; the empty name has no tokens."""

        if not self.name:
            return ()
        return tuple(self.name.split(delimiter))


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    """Backend location token plus relative path inside that location."""

    location: str
    path: str = ""


DEFAULT_ENVIRONMENT = Environment()


def as_environment(value: object) -> Environment:
    """Return *value* as an :class:`Environment`.

    Accepts :class:`Environment` instances, plain strings, ``None`` (the
    default environment) and any object exposing a string ``name`` attribute,
    which lets placeholder or mock environments flow through unchanged.

    Examples
    --------
    >>> as_environment("prod")
    Environment(name='prod')
    >>> as_environment(None) is DEFAULT_ENVIRONMENT
    True
    """

    if value is None:
        return DEFAULT_ENVIRONMENT
    if isinstance(value, Environment):
        return value
    if isinstance(value, str):
        return Environment(value)
    name = getattr(value, "name", None)
    if isinstance(name, str):
        return Environment(name)
    raise ResolutionError(f"Cannot interpret {value!r} as an environment")
