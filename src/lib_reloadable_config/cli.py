"""CLI adapter for ``lib_reloadable_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect what a service would see without writing Python code:
the resolved flat namespace, a bundled resource, or the live stream of change
sets produced by repeated reconciliations.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_read` – prints the resolved namespace as JSON, secrets masked.
* :func:`cli_resource` – prints one resource found through the locator chain.
* :func:`cli_watch` – reloads periodically and prints each change set.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer of the Clean Architecture stack. It
builds providers through the composition root (``create_config_provider``)
and never reaches into adapter implementation details directly.
``lib_cli_exit_tools`` centralises the exit code strategy so all commands
behave consistently across shells and CI.
"""

from __future__ import annotations

import dataclasses
import json
import sys
import time
from importlib import metadata
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.env.default import load_settings, parse_profiles
from .application.provider import ConfigProvider
from .core import create_config_provider
from .domain.changes import ChangeSet
from .observability import mask_value

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
DISTRIBUTION: Final[str] = "lib_reloadable_config"
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Reloadable layered configuration inspector",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=DISTRIBUTION,
    message=f"{DISTRIBUTION} version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


def _source_options(func):
    """Attach the options shared by every command that builds a provider."""

    func = click.option(
        "--profile",
        "profiles",
        multiple=True,
        help="Active profile, applied after 'default' (repeatable; defaults to the environment)",
    )(func)
    func = click.option(
        "--path",
        "config_path",
        default=None,
        help="Base directory holding <profile>/<file> documents",
    )(func)
    return func


def _build_provider(
    config_path: Optional[str],
    profiles: Sequence[str],
    file_name: Optional[str] = None,
) -> ConfigProvider:
    """Return a provider from environment settings overridden by CLI options; no timer."""

    settings = dataclasses.replace(load_settings(), reload_interval=0.0)
    if config_path:
        settings = dataclasses.replace(settings, config_path=config_path)
    if profiles:
        settings = dataclasses.replace(settings, profiles=parse_profiles(",".join(profiles)))
    if file_name:
        settings = dataclasses.replace(settings, file_name=file_name)
    return create_config_provider(settings)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo(f"{DISTRIBUTION} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")
    for entry in meta.get_all("Project-URL") or []:
        click.echo(f"  {entry}")


@cli.command("read", context_settings=CLICK_CONTEXT_SETTINGS)
@_source_options
@click.option("--file", "file_name", default=None, help="Per-profile document name (default application.yml)")
@click.option("--prefix", default=None, help="Only print properties under this dotted prefix")
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
def cli_read(
    config_path: Optional[str],
    profiles: Sequence[str],
    file_name: Optional[str],
    prefix: Optional[str],
    indent: Optional[int],
) -> None:
    """Load the layered namespace once and print it as flat JSON.

    Values flagged sensitive by any resolver are printed as ``[sensitive]``.
    """

    with _build_provider(config_path, profiles, file_name) as provider:
        if prefix:
            values = {name: prop.value for name, prop in provider.properties_by_prefix(prefix).items()}
        else:
            values = provider.snapshot()
        payload = {name: mask_value(value, provider.is_sensitive(name)) for name, value in values.items()}
    click.echo(json.dumps(payload, indent=indent, separators=(",", ":") if indent is None else None))


@cli.command("resource", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("name")
@_source_options
def cli_resource(name: str, config_path: Optional[str], profiles: Sequence[str]) -> None:
    """Print the resource NAME as found by the locator chain."""

    with _build_provider(config_path, profiles) as provider:
        click.echo(provider.resource_as_string(name), nl=False)


@cli.command("watch", context_settings=CLICK_CONTEXT_SETTINGS)
@_source_options
@click.option("--file", "file_name", default=None, help="Per-profile document name (default application.yml)")
@click.option("--interval", type=float, default=5.0, show_default=True, help="Seconds between reloads")
@click.option("--max-cycles", type=int, default=None, help="Stop after this many reloads (default: run forever)")
def cli_watch(
    config_path: Optional[str],
    profiles: Sequence[str],
    file_name: Optional[str],
    interval: float,
    max_cycles: Optional[int],
) -> None:
    """Reload periodically and print one JSON line per non-empty change set."""

    received: list[ChangeSet] = []
    with _build_provider(config_path, profiles, file_name) as provider:
        provider.add_properties_changed_listener(received.append)
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            time.sleep(interval)
            provider.reload()
            cycles += 1
            while received:
                click.echo(json.dumps(received.pop(0).as_dict(), separators=(",", ":")))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=DISTRIBUTION,
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
