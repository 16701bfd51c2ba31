from __future__ import annotations

from io import BytesIO

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_config_source.adapters.properties_providers.properties import PropertiesFileProvider
from lib_config_source.adapters.properties_providers.structured import (
    JSONPropertiesProvider,
    YAMLPropertiesProvider,
    flatten,
)
from lib_config_source.domain.errors import ParseError


def _stream(body: str | bytes, name: str | None = None) -> BytesIO:
    stream = BytesIO(body.encode("utf-8") if isinstance(body, str) else body)
    if name is not None:
        stream.name = name  # type: ignore[attr-defined]
    return stream


def test_properties_basic_syntax() -> None:
    body = "\n".join(
        [
            "# comment",
            "! also a comment",
            "",
            "db.host = localhost",
            "db.port:5432",
            "name value with spaces",
            "flag",
            "  indented=yes",
        ]
    )
    assert PropertiesFileProvider().get_properties(_stream(body)) == {
        "db.host": "localhost",
        "db.port": "5432",
        "name": "value with spaces",
        "flag": "",
        "indented": "yes",
    }


def test_properties_continuations_and_escapes() -> None:
    body = "hosts = a,\\\n    b,\\\n    c\npath=C:\\\\temp\nkey\\ with\\ space=1\nunicode=caf\\u00e9\ntab=a\\tb\n"
    assert PropertiesFileProvider().get_properties(_stream(body)) == {
        "hosts": "a,b,c",
        "path": "C:\\temp",
        "key with space": "1",
        "unicode": "café",
        "tab": "a\tb",
    }


def test_properties_later_duplicate_wins() -> None:
    assert PropertiesFileProvider().get_properties(_stream("a=1\na=2\n")) == {"a": "2"}


def test_properties_malformed_unicode_escape() -> None:
    with pytest.raises(ParseError, match="Malformed line 2"):
        PropertiesFileProvider().get_properties(_stream("ok=1\nbad=\\u12zz\n", name="app.properties"))


def test_properties_invalid_encoding() -> None:
    with pytest.raises(ParseError):
        PropertiesFileProvider().get_properties(_stream(b"key=\xff\xfe"))


def test_yaml_nested_values_are_flattened() -> None:
    body = "db:\n  host: localhost\n  port: 5432\n  replicas: [a, b]\nfeature:\n  enabled: true\nservers:\n  - host: one\n  - host: two\n"
    assert YAMLPropertiesProvider().get_properties(_stream(body)) == {
        "db.host": "localhost",
        "db.port": "5432",
        "db.replicas": "a,b",
        "feature.enabled": "true",
        "servers.0.host": "one",
        "servers.1.host": "two",
    }


def test_yaml_multi_document_later_wins() -> None:
    body = "a: 1\nb: 1\n---\n---\nb: 2\n"
    assert YAMLPropertiesProvider().get_properties(_stream(body)) == {"a": "1", "b": "2"}


def test_yaml_empty_document_is_empty_mapping() -> None:
    assert YAMLPropertiesProvider().get_properties(_stream("")) == {}


@pytest.mark.parametrize("body", ["a: [1, 2\n", "- just\n- a list\n", "plain scalar\n"])
def test_yaml_invalid_inputs(body: str) -> None:
    with pytest.raises(ParseError):
        YAMLPropertiesProvider().get_properties(_stream(body, name="broken.yaml"))


def test_json_object_is_flattened() -> None:
    body = '{"db": {"port": 5432, "ssl": false}, "tags": ["x", "y"], "note": null}'
    assert JSONPropertiesProvider().get_properties(_stream(body)) == {
        "db.port": "5432",
        "db.ssl": "false",
        "tags": "x,y",
        "note": "",
    }


@pytest.mark.parametrize("body", [b'{"a": ', b"[1, 2]", b"\xff"])
def test_json_invalid_inputs(body: bytes) -> None:
    with pytest.raises(ParseError):
        JSONPropertiesProvider().get_properties(_stream(body))


def test_flatten_with_prefix() -> None:
    assert flatten({"a": {"b": "c"}}, "root.") == {"root.a.b": "c"}


SAFE_KEY = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789._-", min_size=1, max_size=12)
SAFE_VALUE = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789,._-/ ", max_size=12).map(str.strip)


@given(st.dictionaries(SAFE_KEY, SAFE_VALUE, max_size=8))
def test_properties_parse_plain_assignments(entries: dict[str, str]) -> None:
    body = "".join(f"{key}={value}\n" for key, value in entries.items())
    assert PropertiesFileProvider().get_properties(_stream(body)) == entries


def test_properties_form_feed_separates_key_and_value() -> None:
    assert PropertiesFileProvider().get_properties(BytesIO(b"key\x0cvalue\n")) == {"key": "value"}


def test_properties_unicode_line_separators_stay_in_values() -> None:
    body = "greeting=hello\u2028world\nnel=a\x85b\r\nother=1\rlast=2"
    assert PropertiesFileProvider().get_properties(_stream(body)) == {
        "greeting": "hello\u2028world",
        "nel": "a\x85b",
        "other": "1",
        "last": "2",
    }


def test_properties_byte_order_mark_is_dropped() -> None:
    assert PropertiesFileProvider().get_properties(BytesIO(b"\xef\xbb\xbfkey=value\n")) == {"key": "value"}


def test_yaml_self_referencing_anchor_is_a_parse_error() -> None:
    with pytest.raises(ParseError, match="Self-referencing"):
        YAMLPropertiesProvider().get_properties(_stream("a: &x [*x]\n"))


def test_yaml_shared_anchors_are_expanded() -> None:
    body = "base: &base {host: a}\ncopy: *base\n"
    assert YAMLPropertiesProvider().get_properties(_stream(body)) == {"base.host": "a", "copy.host": "a"}
