"""CLI adapter for ``lib_config_source`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect what an environment resolves to and which values its
configuration files produce, without writing Python.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command wiring traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_resolve` – shows the ``(location, path)`` decomposition.
* :func:`cli_read` – prints a merged snapshot as JSON, optionally with
  provenance.
* :func:`cli_get` – prints one typed property.
* :func:`main` – entry point used by ``console_scripts``.

System Role
-----------
Outermost layer: translates options into
:class:`lib_config_source.core.SourceSettings` through the builders in
:mod:`lib_config_source.core` and never reaches into the pipeline directly.
``lib_cli_exit_tools`` owns the exit code strategy.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.files_providers.default import (
    DefaultConfigFilesProvider,
    DirectoryScanConfigFilesProvider,
    StaticConfigFilesProvider,
)
from .adapters.resolvers.default import (
    DEFAULT_DELIMITER,
    DEFAULT_LOCATION,
    AllButFirstTokenPathResolver,
    EnvironmentResolver,
    FirstTokenLocationResolver,
    FixedLocationResolver,
    FullNamePathResolver,
)
from .application.ports import ConfigFilesProvider
from .application.source import EnvironmentConfigurationSource
from .core import directory_source, git_source

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

LAYOUT_CHOICES: Final[tuple[str, ...]] = ("branches", "directories")
TYPE_CHOICES: Final[dict[str, type]] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "group": dict,
}


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when not installed."""

    try:
        return metadata.version("lib_config_source")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Environment-scoped configuration reader",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_config_source",
    message="lib_config_source version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_config_source")
    except metadata.PackageNotFoundError:
        click.echo("lib_config_source (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_config_source')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("environment", default="")
@click.option("--layout", type=click.Choice(LAYOUT_CHOICES), default="branches", show_default=True)
@click.option("--default-location", default=DEFAULT_LOCATION, show_default=True, help="Location for the empty environment")
@click.option("--delimiter", default=DEFAULT_DELIMITER, show_default=True, help="Environment token delimiter")
def cli_resolve(environment: str, layout: str, default_location: str, delimiter: str) -> None:
    """Print the location and relative path ENVIRONMENT resolves to.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["resolve", "prod/eu/payments"])
    >>> json.loads(result.output)
    {'location': 'prod', 'path': 'eu/payments'}
    """

    resolver = _resolver_for(layout, default_location=default_location, delimiter=delimiter)
    resolved = resolver.resolve(environment)
    click.echo(json.dumps({"location": resolved.location, "path": resolved.path}))


def _source_options(command: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by commands that query a source."""

    options = [
        click.option(
            "--root",
            type=click.Path(path_type=Path, file_okay=False, dir_okay=True),
            default=None,
            help="Local configuration tree (<root>/<location>/<path>)",
        ),
        click.option("--git", "git_uri", default=None, help="Git repository to clone instead of --root"),
        click.option("--environment", "-e", default="", help="Environment name, e.g. prod/eu"),
        click.option("--layout", type=click.Choice(LAYOUT_CHOICES), default="branches", show_default=True),
        click.option("--file", "files", multiple=True, help="Configuration file name, lowest precedence first (repeatable)"),
        click.option("--scan", is_flag=True, default=False, help="Load every file in the directory, sorted by name"),
        click.option("--suffix", "suffixes", multiple=True, help="Restrict --scan to these suffixes (repeatable)"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


@cli.command("read", context_settings=CLICK_CONTEXT_SETTINGS)
@_source_options
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@click.option("--provenance/--no-provenance", default=False, help="Include the file each key came from")
def cli_read(
    root: Optional[Path],
    git_uri: Optional[str],
    environment: str,
    layout: str,
    files: Sequence[str],
    scan: bool,
    suffixes: Sequence[str],
    indent: Optional[int],
    provenance: bool,
) -> None:
    """Merge the configuration of an environment and print it as JSON."""

    source = _build_source(root, git_uri, layout=layout, files=files, scan=scan, suffixes=suffixes)
    with source:
        snapshot = source.get_configuration(environment)
    if provenance:
        payload = {"config": snapshot.as_dict(), "provenance": snapshot.provenance()}
        click.echo(json.dumps(payload, indent=indent, separators=(",", ":")))
        return
    click.echo(snapshot.to_json(indent=indent))


@cli.command("get", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@_source_options
@click.option("--type", "type_name", type=click.Choice(tuple(TYPE_CHOICES)), default="str", show_default=True)
def cli_get(
    key: str,
    root: Optional[Path],
    git_uri: Optional[str],
    environment: str,
    layout: str,
    files: Sequence[str],
    scan: bool,
    suffixes: Sequence[str],
    type_name: str,
) -> None:
    """Print the property KEY converted to --type; fails when absent."""

    source = _build_source(root, git_uri, layout=layout, files=files, scan=scan, suffixes=suffixes)
    with source:
        snapshot = source.get_configuration(environment)
    value = snapshot.get_property(key, TYPE_CHOICES[type_name])
    click.echo(value if isinstance(value, str) else json.dumps(value))


def _build_source(
    root: Optional[Path],
    git_uri: Optional[str],
    *,
    layout: str,
    files: Sequence[str],
    scan: bool,
    suffixes: Sequence[str],
) -> EnvironmentConfigurationSource:
    """Translate CLI options into a configured, not yet initialised source."""

    if (root is None) == (git_uri is None):
        raise click.UsageError("Pass exactly one of --root or --git")
    overrides = {
        "files_provider": _files_provider(files, scan=scan, suffixes=suffixes),
        "resolver": _resolver_for(layout),
    }
    if git_uri is not None:
        return git_source(git_uri, **overrides)
    return directory_source(root, use_location=layout == "branches", **overrides)


def _files_provider(files: Sequence[str], *, scan: bool, suffixes: Sequence[str]) -> ConfigFilesProvider:
    """Return the discovery policy selected by ``--file``/``--scan``."""

    if scan and files:
        raise click.UsageError("--scan and --file are mutually exclusive")
    if scan:
        return DirectoryScanConfigFilesProvider(suffixes=_normalize_suffixes(suffixes))
    if suffixes:
        raise click.UsageError("--suffix requires --scan")
    if files:
        return StaticConfigFilesProvider(*files)
    return DefaultConfigFilesProvider()


def _resolver_for(
    layout: str,
    *,
    default_location: str = DEFAULT_LOCATION,
    delimiter: str = DEFAULT_DELIMITER,
) -> EnvironmentResolver:
    """Return the resolver matching a ``--layout`` choice."""

    if layout == "directories":
        return EnvironmentResolver(FixedLocationResolver(default_location), FullNamePathResolver())
    return EnvironmentResolver(
        FirstTokenLocationResolver(default_location=default_location, delimiter=delimiter),
        AllButFirstTokenPathResolver(delimiter=delimiter),
    )


def _normalize_suffixes(values: Sequence[str]) -> Optional[tuple[str, ...]]:
    """Strip one leading dot from CLI suffixes; ``None`` when none were given."""

    if not values:
        return None
    return tuple(value[1:] if value.startswith(".") else value for value in values)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_config_source",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
