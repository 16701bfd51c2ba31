"""Application-layer merge engine.

Purpose
-------
Turn the files discovered for one query into a single flat mapping with
provenance. Later files win on key collisions; the order of the file list is
the only precedence rule.

Contents
    - ``merge_files``: opens and parses every discovered file, then merges.
    - ``merge_layers``: pure merge of already parsed mappings.
    - ``_load_file``: reads one file through its selected provider and
      attaches the file path to parse failures.

System Role
-----------
Called by :class:`lib_config_source.application.source.EnvironmentConfigurationSource`
once per query. Each call builds its own accumulator, so concurrent queries do
not interfere. Merging is total: a single failing file aborts the whole call
and nothing partial is returned.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Iterable

from ..domain.config import SourceInfo
from ..domain.errors import DiscoveryError, ParseError
from ..observability import log_debug, log_error
from .ports import ProviderSelector


def merge_files(
    root: Path,
    files: Iterable[str],
    selector: ProviderSelector,
) -> tuple[dict[str, str], dict[str, SourceInfo]]:
    """Load every file in *files* below *root* and merge them in order.

    Parameters
    ----------
    root:
        Directory the relative paths in *files* are resolved against.
    files:
        Relative paths in precedence order (lowest first).
    selector:
        Suffix table choosing the provider per file.

    Returns
    -------
    tuple[dict[str, str], dict[str, SourceInfo]]
        ``(merged_data, provenance)``; both empty when *files* is empty.

    Raises
    ------
    ParseError
        When any file is malformed; ``exc.path`` names the file.
    DiscoveryError
        When a discovered file cannot be opened.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> from lib_config_source.adapters.properties_providers.selector import default_selector
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> _ = (root / "a.properties").write_text("x=1\\ny=1", encoding="utf-8")
    >>> _ = (root / "b.json").write_text('{"y": 2}', encoding="utf-8")
    >>> data, meta = merge_files(root, ["a.properties", "b.json"], default_selector())
    >>> data
    {'x': '1', 'y': '2'}
    >>> meta["y"]["file"]
    'b.json'
    >>> tmp.cleanup()
    """

    base = Path(root)
    layers = [_load_file(base, relative, selector) for relative in files]
    merged = merge_layers(layers)
    log_debug("files_merged", environment=None, path=str(base), files=len(layers), keys=len(merged[0]))
    return merged


def merge_layers(
    layers: Iterable[tuple[str, Mapping[str, str], str | None]],
) -> tuple[dict[str, str], dict[str, SourceInfo]]:
    """Merge ``(file, mapping, path)`` tuples; the last write wins per key.

    Examples
    --------
    >>> data, meta = merge_layers([
    ...     ("base.properties", {"timeout": "5", "host": "a"}, None),
    ...     ("local.properties", {"timeout": "10"}, None),
    ... ])
    >>> data, meta["timeout"]["file"]
    ({'timeout': '10', 'host': 'a'}, 'local.properties')
    """

    merged: dict[str, str] = {}
    meta: dict[str, SourceInfo] = {}
    for file_name, payload, path in layers:
        for key, value in payload.items():
            merged[key] = value
            meta[key] = SourceInfo(file=file_name, path=path, key=key)
    return merged, meta


def _load_file(
    root: Path,
    relative: str,
    selector: ProviderSelector,
) -> tuple[str, Mapping[str, str], str | None]:
    """Parse *relative* below *root* with the provider chosen for its name."""

    path = root / relative
    provider = selector.get_provider(relative)
    try:
        with path.open("rb") as stream:
            data = provider.get_properties(stream)
    except ParseError as exc:
        log_error("config_file_invalid", environment=None, path=str(path), error=str(exc))
        raise ParseError(f"Failed to parse configuration file {path}: {exc}", path=str(path)) from exc
    except OSError as exc:
        raise DiscoveryError(f"Cannot read configuration file {path}: {exc}") from exc
    log_debug("config_file_loaded", environment=None, path=str(path), keys=len(data))
    return relative, data, str(path)
