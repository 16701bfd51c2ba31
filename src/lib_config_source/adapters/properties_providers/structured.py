"""Structured format providers (YAML and JSON).

Purpose
-------
Convert YAML and JSON byte streams into the flat, dotted-key mappings the
merge engine works with. Parsing is delegated to ``yaml.safe_load_all`` and
:func:`json.load`; flattening and error translation live here so both
formats behave the same.

Contents
--------
* :class:`FormatBasedPropertiesProvider` – shared flattening and validation.
* :class:`YAMLPropertiesProvider` – multi-document YAML.
* :class:`JSONPropertiesProvider` – single JSON object.
* :func:`flatten` – nested structure to ``dict[str, str]``.

System Role
-----------
Registered in :func:`lib_config_source.adapters.properties_providers.selector.default_selector`
for the ``yaml``, ``yml`` and ``json`` suffixes.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, BinaryIO

import yaml

from ...domain.errors import ParseError
from ...observability import log_debug, log_error


class FormatBasedPropertiesProvider:
    """Common helpers shared by the structured providers."""

    format_name = "structured"

    @staticmethod
    def _ensure_mapping(data: object, *, source: str) -> Mapping[str, Any]:
        """Ensure *data* is a mapping, otherwise raise :class:`ParseError`.

        Examples
        --------
        >>> FormatBasedPropertiesProvider._ensure_mapping({"key": 1}, source="demo")
        {'key': 1}
        >>> FormatBasedPropertiesProvider._ensure_mapping([1], source="demo")
        Traceback (most recent call last):
        ...
        lib_config_source.domain.errors.ParseError: demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise ParseError(f"{source} did not produce a mapping")
        return data

    def _finish(self, data: Mapping[str, Any], *, source: str) -> dict[str, str]:
        try:
            result = flatten(data)
        except ParseError as exc:
            raise self._fail(exc, source=source) from exc
        log_debug("config_stream_parsed", environment=None, path=source, format=self.format_name, keys=len(result))
        return result

    def _fail(self, exc: Exception, *, source: str) -> ParseError:
        log_error("config_file_invalid", environment=None, path=source, format=self.format_name, error=str(exc))
        return ParseError(f"Invalid {self.format_name.upper()} in {source}: {exc}")


class YAMLPropertiesProvider(FormatBasedPropertiesProvider):
    """Parse YAML streams; later documents override earlier ones.

    Examples
    --------
    >>> from io import BytesIO
    >>> body = b"db:\\n  port: 5432\\n---\\ndb:\\n  port: 6543\\n"
    >>> YAMLPropertiesProvider().get_properties(BytesIO(body))
    {'db.port': '6543'}
    """

    format_name = "yaml"

    def get_properties(self, stream: BinaryIO) -> dict[str, str]:
        source = _stream_name(stream)
        merged: dict[str, str] = {}
        try:
            for document in yaml.safe_load_all(stream):
                if document is None:
                    continue
                merged.update(self._finish(self._ensure_mapping(document, source=source), source=source))
        except yaml.YAMLError as exc:
            raise self._fail(exc, source=source) from exc
        return merged


class JSONPropertiesProvider(FormatBasedPropertiesProvider):
    """Parse a JSON object.

    Examples
    --------
    >>> from io import BytesIO
    >>> JSONPropertiesProvider().get_properties(BytesIO(b'{"feature": {"enabled": true}}'))
    {'feature.enabled': 'true'}
    """

    format_name = "json"

    def get_properties(self, stream: BinaryIO) -> dict[str, str]:
        source = _stream_name(stream)
        try:
            data = json.load(stream)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._fail(exc, source=source) from exc
        return self._finish(self._ensure_mapping(data, source=source), source=source)


def flatten(data: Mapping[str, Any], prefix: str = "", *, _parents: tuple[int, ...] = ()) -> dict[str, str]:
    """Flatten nested mappings into dotted keys with string values.

    Lists of scalars become comma separated strings; lists that contain
    mappings or lists are expanded with index segments.
    Containers that contain themselves (YAML anchors such as ``a: &x [*x]``)
    raise :class:`ParseError`.

    Examples
    --------
    >>> flatten({"a": {"b": 1, "c": [1, 2]}, "d": None, "e": False})
    {'a.b': '1', 'a.c': '1,2', 'd': '', 'e': 'false'}
    >>> flatten({"servers": [{"host": "a"}, {"host": "b"}]})
    {'servers.0.host': 'a', 'servers.1.host': 'b'}
    """

    parents = (*_parents, id(data))
    result: dict[str, str] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, (Mapping, list, tuple)) and id(value) in parents:
            raise ParseError(f"Self-referencing value at key {dotted!r}")
        if isinstance(value, Mapping):
            result.update(flatten(value, f"{dotted}.", _parents=parents))
        elif isinstance(value, (list, tuple)):
            result.update(_flatten_sequence(value, dotted, parents))
        else:
            result[dotted] = _render(value)
    return result


def _flatten_sequence(items: list[Any] | tuple[Any, ...], dotted: str, parents: tuple[int, ...]) -> dict[str, str]:
    if not any(isinstance(item, (Mapping, list, tuple)) for item in items):
        return {dotted: ",".join(_render(item) for item in items)}
    result: dict[str, str] = {}
    inner = (*parents, id(items))
    for index, item in enumerate(items):
        result.update(flatten({str(index): item}, f"{dotted}.", _parents=inner))
    return result


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _stream_name(stream: BinaryIO) -> str:
    name = getattr(stream, "name", None)
    return str(name) if name is not None else "<stream>"
