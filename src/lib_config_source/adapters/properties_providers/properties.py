"""Property-file syntax provider.

Purpose
-------
Parse ``key=value`` property files (the ``.properties`` convention) into flat
mappings. This is the default provider: every file whose suffix is not
registered for another format ends up here.

Contents
--------
* :class:`PropertiesFileProvider` – entry point implementing the
  :class:`lib_config_source.application.ports.PropertiesProvider` protocol.
* Helpers (`_logical_lines`, `_split_entry`, `_unescape`) that join
  continuation lines, split keys from values, and decode escapes.

Syntax
------
* Blank lines and lines starting with ``#`` or ``!`` are ignored.
* The key ends at the first unescaped ``=``, ``:`` or whitespace; a line
  without separator is a key with an empty value.
* A line ending in an odd number of backslashes continues on the next line;
  leading whitespace of continuation lines is dropped.
* Escapes: ``\\t``, ``\\n``, ``\\r``, ``\\f``, ``\\uXXXX``; any other escaped
  character stands for itself.
* Files are UTF-8; a leading byte order mark is dropped. Only ``\\n``,
  ``\\r`` and ``\\r\\n`` end a line; form feeds and Unicode line separators
  are ordinary characters. Undecodable bytes and malformed ``\\u``
  escapes raise :class:`ParseError`.
"""

from __future__ import annotations

import re
import string
from typing import BinaryIO, Iterator

from ...domain.errors import ParseError
from ...observability import log_debug, log_error

_SEPARATORS = frozenset("=:")
_WHITESPACE = frozenset(" \t\f")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_HEX = frozenset(string.hexdigits)
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class PropertiesFileProvider:
    """Parse property-file syntax into a flat mapping.

    Examples
    --------
    >>> from io import BytesIO
    >>> body = b"# comment\\ndb.host = localhost\\ndb.hosts: a,\\\\\\n    b\\ngreeting=caf\\\\u00e9\\n"
    >>> PropertiesFileProvider().get_properties(BytesIO(body))
    {'db.host': 'localhost', 'db.hosts': 'a,b', 'greeting': 'café'}
    """

    def get_properties(self, stream: BinaryIO) -> dict[str, str]:
        source = _stream_name(stream)
        try:
            text = stream.read().decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            log_error("config_file_invalid", environment=None, path=source, format="properties", error=str(exc))
            raise ParseError(f"Invalid encoding in {source}: {exc}") from exc

        result: dict[str, str] = {}
        for line_number, line in _logical_lines(text):
            try:
                key, value = _split_entry(line)
            except ValueError as exc:
                log_error("config_file_invalid", environment=None, path=source, format="properties", line=line_number)
                raise ParseError(f"Malformed line {line_number} in {source}: {exc}") from exc
            result[key] = value
        log_debug("config_stream_parsed", environment=None, path=source, format="properties", keys=len(result))
        return result


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(first_line_number, logical_line)`` pairs with continuations joined.

    Examples
    --------
    >>> list(_logical_lines("a=1\\\\\\n  2\\n\\n# c\\nb=3"))
    [(1, 'a=12'), (5, 'b=3')]
    """

    parts: list[str] = []
    start = 0
    for number, raw in enumerate(_LINE_BREAK.split(text), start=1):
        line = raw.lstrip(" \t\f")
        if not parts:
            if not line or line[0] in "#!":
                continue
            start = number
        if _continues(line):
            parts.append(line[:-1])
            continue
        parts.append(line)
        yield start, "".join(parts)
        parts = []
    if parts:
        yield start, "".join(parts)


def _continues(line: str) -> bool:
    """Return ``True`` when *line* ends in an odd number of backslashes."""

    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line into unescaped ``(key, value)``.

    Examples
    --------
    >>> _split_entry("key = value")
    ('key', 'value')
    >>> _split_entry("path\\\\:with\\\\=seps:  v")
    ('path:with=seps', 'v')
    >>> _split_entry("flag")
    ('flag', '')
    """

    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in _SEPARATORS or char in _WHITESPACE:
            break
        index += 1
    key_end = min(index, length)
    while index < length and line[index] in _WHITESPACE:
        index += 1
    if index < length and line[index] in _SEPARATORS:
        index += 1
        while index < length and line[index] in _WHITESPACE:
            index += 1
    return _unescape(line[:key_end]), _unescape(line[index:])


def _unescape(text: str) -> str:
    """Decode backslash escapes, raising ``ValueError`` on bad ``\\u`` sequences.

    Examples
    --------
    >>> _unescape("tab\\\\there")
    'tab\\there'
    >>> _unescape("\\\\u12")
    Traceback (most recent call last):
    ...
    ValueError: Malformed \\uxxxx encoding: '\\\\u12'
    """

    if "\\" not in text:
        return text
    out: list[str] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char != "\\":
            out.append(char)
            index += 1
            continue
        index += 1
        if index >= length:
            break
        char = text[index]
        if char == "u":
            digits = text[index + 1 : index + 5]
            if len(digits) != 4 or not set(digits) <= _HEX:
                raise ValueError(f"Malformed \\uxxxx encoding: {text[index - 1 : index + 5]!r}")
            out.append(chr(int(digits, 16)))
            index += 5
            continue
        out.append(_ESCAPES.get(char, char))
        index += 1
    return "".join(out)


def _stream_name(stream: BinaryIO) -> str:
    name = getattr(stream, "name", None)
    return str(name) if name is not None else "<stream>"
