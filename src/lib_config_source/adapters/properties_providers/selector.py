"""Suffix based selection of properties providers.

Purpose
-------
Map a file name to the provider able to parse it. The table is supplied at
construction time, so new formats are added by passing another binding rather
than by editing this module.

Contents
--------
* :class:`PropertiesProviderSelector` – literal suffix lookup with a default.
* :func:`default_selector` – ``yaml``/``yml`` -> YAML, ``json`` -> JSON,
  everything else -> property-file syntax.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from ...application.ports import PropertiesProvider
from .properties import PropertiesFileProvider
from .structured import JSONPropertiesProvider, YAMLPropertiesProvider


class PropertiesProviderSelector:
    """Pick a :class:`PropertiesProvider` by the literal suffix of a file name.

    Why
    ----
    Discovery yields heterogeneous files; each one needs the parser for its
    format without the merge engine knowing about formats.

    What
    ----
    The suffix is the substring after the last ``.``. It is compared
    literally: no case folding, no stripping. Unknown suffixes and names
    without a dot fall back to *default*.

    Parameters
    ----------
    default:
        Provider used when no binding matches.
    bindings:
        ``(provider, suffixes)`` pairs. Suffixes are given without the dot.

    Raises
    ------
    ValueError
        When a suffix is empty, contains a dot, or is bound to two different
        providers.

    Examples
    --------
    >>> selector = default_selector()
    >>> type(selector.get_provider("test.yml")).__name__
    'YAMLPropertiesProvider'
    >>> type(selector.get_provider("test.YAML")).__name__
    'PropertiesFileProvider'
    """

    def __init__(
        self,
        default: PropertiesProvider,
        *bindings: tuple[PropertiesProvider, Iterable[str]],
    ) -> None:
        self.default = default
        table: dict[str, PropertiesProvider] = {}
        for provider, suffixes in bindings:
            if isinstance(suffixes, str):
                suffixes = (suffixes,)
            for suffix in suffixes:
                if not suffix or "." in suffix:
                    raise ValueError(f"Invalid suffix {suffix!r}; pass suffixes without dots")
                bound = table.get(suffix)
                if bound is not None and bound is not provider:
                    raise ValueError(f"Suffix {suffix!r} is already bound to {bound!r}")
                table[suffix] = provider
        self._table = table

    @property
    def table(self) -> Mapping[str, PropertiesProvider]:
        """Return a copy of the suffix table."""

        return dict(self._table)

    def get_provider(self, filename: str) -> PropertiesProvider:
        """Return the provider bound to the suffix of *filename*, else the default."""

        _, dot, suffix = filename.rpartition(".")
        if not dot:
            return self.default
        return self._table.get(suffix, self.default)

    def __repr__(self) -> str:
        return f"PropertiesProviderSelector(default={self.default!r}, suffixes={sorted(self._table)!r})"


def default_selector() -> PropertiesProviderSelector:
    """Build the selector with the standard format table."""

    yaml_provider = YAMLPropertiesProvider()
    return PropertiesProviderSelector(
        PropertiesFileProvider(),
        (yaml_provider, ("yaml", "yml")),
        (JSONPropertiesProvider(), ("json",)),
    )
