"""Domain-level configuration snapshot.

Purpose
-------
Anchor the immutable :class:`ConfigSnapshot` value object returned by every
configuration query. The module contains no I/O.

Contents
--------
* :class:`SourceInfo` – typed provenance record (file, path, dotted key).
* :class:`ConfigSnapshot` – ``Mapping`` over dotted keys with typed accessors,
  nested groups, provenance lookups, and functional overrides.
* :func:`_coerce` and friends – conversion of stored strings into requested
  types.
* :data:`EMPTY_SNAPSHOT` – canonical empty instance.

System Role
-----------
Produced fresh by
:meth:`lib_config_source.application.source.EnvironmentConfigurationSource.get_configuration`
for each call. Snapshots are values: never mutated after construction and
safe to read from several threads.
"""

from __future__ import annotations

import json
from collections.abc import Mapping as MappingABC
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterator, TypedDict, TypeVar, overload

from .errors import PropertyLookupError


class SourceInfo(TypedDict):
    """Describe the origin of a merged configuration key.

    Attributes
    ----------
    file:
        Relative file name as produced by file discovery (for example
        ``"application.properties"``).
    path:
        Concrete filesystem path that supplied the value, ``None`` for
        in-memory sources.
    key:
        Dotted key the record belongs to.
    """

    file: str
    path: str | None
    key: str


T = TypeVar("T")

_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0"})


@dataclass(frozen=True, slots=True)
class ConfigSnapshot(MappingABC[str, str]):
    """Immutable mapping from dotted keys to raw string values.

    Why
    ----
    Callers need a read-only structure that behaves like a dictionary, coerces
    values on demand, and explains which file supplied each key.

    Parameters
    ----------
    _data:
        Flat mapping produced by the merge engine. Wrapped in a
        ``mappingproxy`` during initialisation.
    _meta:
        Mapping from dotted keys to :class:`SourceInfo`.

    Examples
    --------
    >>> snapshot = ConfigSnapshot(
    ...     {"db.port": "5432", "db.hosts": "a,b", "debug": "true"},
    ...     {"db.port": {"file": "application.properties", "path": None, "key": "db.port"}},
    ... )
    >>> snapshot.get_property("db.port", int)
    5432
    >>> snapshot.get_list("db.hosts")
    ['a', 'b']
    >>> snapshot.get_property("debug", bool)
    True
    >>> dict(snapshot.group("db"))
    {'port': '5432', 'hosts': 'a,b'}
    """

    _data: Mapping[str, str]
    _meta: Mapping[str, SourceInfo]

    def __post_init__(self) -> None:
        object.__setattr__(self, "_data", _freeze_mapping(self._data))
        object.__setattr__(self, "_meta", _freeze_mapping(self._meta))

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def is_empty(self) -> bool:
        """Return ``True`` when no key was resolved."""

        return not self._data

    @overload
    def get(self, key: str) -> str | None: ...

    @overload
    def get(self, key: str, default: T) -> str | T: ...

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def get_property(self, key: str, expected_type: type[T] | Callable[[str], T] = str) -> T:  # type: ignore[assignment]
        """Return *key* converted to *expected_type*.

        Why
        ----
        Values are stored as the strings the format providers produced; typed
        access happens at the edge so every caller decides its own contract.

        Parameters
        ----------
        key:
            Dotted key (``"service.timeout"``).
        expected_type:
            ``str``, ``int``, ``float``, ``bool``, ``list``, ``tuple``,
            ``dict`` (nested group) or any callable accepting the raw string.

        Raises
        ------
        PropertyLookupError
            When *key* is absent or the value cannot be converted.

        Examples
        --------
        >>> snapshot = ConfigSnapshot({"retries": "three"}, {})
        >>> snapshot.get_property("retries", int)
        Traceback (most recent call last):
        ...
        lib_config_source.domain.errors.PropertyLookupError: Property 'retries' with value 'three' cannot be converted to int
        """

        if expected_type is dict:
            group = self.group(key)
            if group.is_empty():
                raise PropertyLookupError(f"No properties found under group {key!r}", key=key)
            return group.as_dict()  # type: ignore[return-value]
        if key not in self._data:
            raise PropertyLookupError(f"Property {key!r} not found", key=key)
        raw = self._data[key]
        try:
            return _coerce(raw, expected_type)
        except (TypeError, ValueError) as exc:
            name = getattr(expected_type, "__name__", repr(expected_type))
            raise PropertyLookupError(
                f"Property {key!r} with value {raw!r} cannot be converted to {name}", key=key
            ) from exc

    def get_list(self, key: str, item_type: type[T] | Callable[[str], T] = str) -> list[T]:  # type: ignore[assignment]
        """Return the comma separated value at *key* as a list of *item_type*."""

        items = self.get_property(key, list)
        try:
            return [_coerce(item, item_type) for item in items]
        except (TypeError, ValueError) as exc:
            raise PropertyLookupError(f"Property {key!r} contains items that cannot be converted", key=key) from exc

    def group(self, prefix: str) -> ConfigSnapshot:
        """Return the keys below *prefix* with the prefix stripped.

        An unknown prefix yields an empty snapshot.
        """

        marker = prefix.rstrip(".") + "."
        data: dict[str, str] = {}
        meta: dict[str, SourceInfo] = {}
        for key, value in self._data.items():
            if key.startswith(marker):
                child = key[len(marker) :]
                data[child] = value
                if key in self._meta:
                    meta[child] = self._meta[key]
        return ConfigSnapshot(data, meta)

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for *key* or ``None`` when no file produced it."""

        return self._meta.get(key)

    def as_dict(self) -> dict[str, str]:
        """Return a mutable copy of the flat key/value mapping."""

        return dict(self._data)

    def provenance(self) -> dict[str, SourceInfo]:
        """Return a mutable copy of the provenance records."""

        return {key: SourceInfo(**info) for key, info in self._meta.items()}

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the flat mapping to JSON.

        Examples
        --------
        >>> ConfigSnapshot({"service.timeout": "5"}, {}).to_json()
        '{"service.timeout":"5"}'
        """

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False)

    def with_overrides(self, overrides: Mapping[str, Any]) -> ConfigSnapshot:
        """Return a new snapshot with *overrides* applied; values are stringified.

        Overridden keys lose their file provenance.
        """

        data = dict(self._data)
        meta = dict(self._meta)
        for key, value in overrides.items():
            data[key] = _render_scalar(value)
            meta.pop(key, None)
        return ConfigSnapshot(data, meta)


def _freeze_mapping(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return an immutable proxy around a copy of *mapping*."""

    return MappingProxyType(dict(mapping))


def _coerce(raw: str, expected_type: Any) -> Any:
    """Convert *raw* into *expected_type*, raising ``ValueError`` when impossible.

    Examples
    --------
    >>> _coerce("On", bool), _coerce("3", int), _coerce(" a , b ", list)
    (True, 3, ['a', 'b'])
    """

    if expected_type is str:
        return raw
    if expected_type is bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    if expected_type in (list, tuple):
        items = [item.strip() for item in raw.split(",")] if raw.strip() else []
        return expected_type(items)
    if expected_type in (int, float):
        return expected_type(raw.strip())
    return expected_type(raw)


def _render_scalar(value: Any) -> str:
    """Render *value* the way format providers store scalars."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(_render_scalar(item) for item in value)
    return str(value)


#: Shared empty snapshot, safe to re-use because :class:`ConfigSnapshot` is immutable.
EMPTY_SNAPSHOT = ConfigSnapshot(MappingProxyType({}), MappingProxyType({}))
