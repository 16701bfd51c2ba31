from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from lib_config_source.adapters.files_providers.default import (
    DEFAULT_CONFIG_FILE,
    DefaultConfigFilesProvider,
    DirectoryScanConfigFilesProvider,
    StaticConfigFilesProvider,
)
from lib_config_source.domain.errors import DiscoveryError


def _touch(root: Path, *names: str) -> None:
    for name in names:
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("k=v", encoding="utf-8")


def test_default_provider_returns_application_properties(tmp_path: Path) -> None:
    assert DefaultConfigFilesProvider().get_config_files(tmp_path) == []
    _touch(tmp_path, DEFAULT_CONFIG_FILE)
    assert DefaultConfigFilesProvider().get_config_files(tmp_path) == ["application.properties"]


def test_default_provider_ignores_directories(tmp_path: Path) -> None:
    (tmp_path / DEFAULT_CONFIG_FILE).mkdir()
    assert DefaultConfigFilesProvider().get_config_files(tmp_path) == []


def test_providers_treat_missing_root_as_empty(tmp_path: Path) -> None:
    missing = tmp_path / "does" / "not" / "exist"
    assert DefaultConfigFilesProvider().get_config_files(missing) == []
    assert StaticConfigFilesProvider("a.yaml").get_config_files(missing) == []
    assert DirectoryScanConfigFilesProvider().get_config_files(missing) == []


def test_root_that_is_a_file_counts_as_missing(tmp_path: Path) -> None:
    _touch(tmp_path, "plain")
    assert DirectoryScanConfigFilesProvider().get_config_files(tmp_path / "plain") == []
    assert DefaultConfigFilesProvider().get_config_files(tmp_path / "plain") == []


def test_static_provider_preserves_given_order(tmp_path: Path) -> None:
    _touch(tmp_path, "override.yaml", "base.properties")
    provider = StaticConfigFilesProvider("base.properties", "missing.json", "override.yaml")
    assert provider.get_config_files(tmp_path) == ["base.properties", "override.yaml"]


def test_static_provider_needs_names() -> None:
    with pytest.raises(ValueError):
        StaticConfigFilesProvider()


def test_scan_provider_sorts_and_filters(tmp_path: Path) -> None:
    _touch(tmp_path, "90-local.yaml", "10-base.yaml", "50-mid.json", ".hidden.yaml", "README", "nested/20-deep.yaml")
    assert DirectoryScanConfigFilesProvider().get_config_files(tmp_path) == [
        "10-base.yaml",
        "50-mid.json",
        "90-local.yaml",
        "README",
    ]
    assert DirectoryScanConfigFilesProvider(suffixes=("yaml",)).get_config_files(tmp_path) == [
        "10-base.yaml",
        "90-local.yaml",
    ]


def test_scan_provider_recursive(tmp_path: Path) -> None:
    _touch(tmp_path, "10-base.yaml", "nested/20-deep.yaml")
    files = DirectoryScanConfigFilesProvider(recursive=True).get_config_files(tmp_path)
    assert files == ["10-base.yaml", "nested/20-deep.yaml"]


@pytest.mark.skipif(sys.platform.startswith("win") or getattr(os, "geteuid", lambda: 0)() == 0, reason="needs POSIX permissions as non-root")
def test_permission_errors_surface_as_discovery_errors(tmp_path: Path) -> None:
    locked = tmp_path / "locked"
    _touch(locked, DEFAULT_CONFIG_FILE)
    locked.chmod(0)
    try:
        with pytest.raises(DiscoveryError):
            DirectoryScanConfigFilesProvider().get_config_files(locked)
        with pytest.raises(DiscoveryError):
            DefaultConfigFilesProvider().get_config_files(locked)
    finally:
        locked.chmod(0o755)
