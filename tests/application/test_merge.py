from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_config_source.adapters.properties_providers.selector import default_selector
from lib_config_source.application.merge import merge_files, merge_layers
from lib_config_source.domain.errors import ParseError

KEY = st.text(alphabet="abcdefghij.", min_size=1, max_size=6)
VALUE = st.text(max_size=5)
MAPPING = st.dictionaries(KEY, VALUE, max_size=6)


def test_later_layer_overrides_earlier() -> None:
    layers = [
        ("application.properties", {"timeout": "5", "host": "a"}, "/srv/application.properties"),
        ("override.yaml", {"timeout": "10"}, "/srv/override.yaml"),
    ]
    merged, meta = merge_layers(layers)
    assert merged == {"timeout": "10", "host": "a"}
    assert meta["timeout"]["file"] == "override.yaml"
    assert meta["host"] == {"file": "application.properties", "path": "/srv/application.properties", "key": "host"}


def test_merge_of_nothing_is_empty() -> None:
    assert merge_layers([]) == ({}, {})


def test_merge_is_idempotent() -> None:
    layers = [("a", {"x": "1"}, None), ("b", {"x": "2", "y": "3"}, None)]
    assert merge_layers(layers) == merge_layers(layers)


@given(MAPPING, MAPPING)
def test_last_layer_wins(lhs: dict[str, str], rhs: dict[str, str]) -> None:
    merged, meta = merge_layers([("lhs", lhs, None), ("rhs", rhs, None)])
    assert set(merged) == set(lhs) | set(rhs)
    for key, value in rhs.items():
        assert merged[key] == value
        assert meta[key]["file"] == "rhs"
    for key in set(lhs) - set(rhs):
        assert meta[key]["file"] == "lhs"


@given(MAPPING, MAPPING, MAPPING)
def test_merge_associative(lhs: dict[str, str], mid: dict[str, str], rhs: dict[str, str]) -> None:
    all_at_once, _ = merge_layers([("lhs", lhs, None), ("mid", mid, None), ("rhs", rhs, None)])
    left_first, _ = merge_layers([("lhs-mid", merge_layers([("lhs", lhs, None), ("mid", mid, None)])[0], None), ("rhs", rhs, None)])
    assert all_at_once == left_first


def test_merge_files_mixes_formats(tmp_path: Path) -> None:
    (tmp_path / "application.properties").write_text("db.host=localhost\ndb.port=5432\n", encoding="utf-8")
    (tmp_path / "override.yaml").write_text("db:\n  port: 6543\n", encoding="utf-8")
    (tmp_path / "extra.json").write_text('{"feature": {"enabled": true}}', encoding="utf-8")
    data, meta = merge_files(tmp_path, ["application.properties", "override.yaml", "extra.json"], default_selector())
    assert data == {"db.host": "localhost", "db.port": "6543", "feature.enabled": "true"}
    assert meta["db.port"]["path"] == str(tmp_path / "override.yaml")


def test_merge_files_failure_names_the_file(tmp_path: Path) -> None:
    (tmp_path / "good.properties").write_text("a=1\n", encoding="utf-8")
    (tmp_path / "bad.json").write_text('{"a": ', encoding="utf-8")
    with pytest.raises(ParseError) as excinfo:
        merge_files(tmp_path, ["good.properties", "bad.json"], default_selector())
    assert excinfo.value.path == str(tmp_path / "bad.json")
    assert "bad.json" in str(excinfo.value)


def test_merge_files_reports_recursive_yaml_with_path(tmp_path: Path) -> None:
    (tmp_path / "loop.yaml").write_text("a: &x [*x]\n", encoding="utf-8")
    with pytest.raises(ParseError) as excinfo:
        merge_files(tmp_path, ["loop.yaml"], default_selector())
    assert excinfo.value.path == str(tmp_path / "loop.yaml")
