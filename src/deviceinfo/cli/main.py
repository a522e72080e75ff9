"""deviceinfo CLI — show device info, inspect and bump per-version counters."""

from __future__ import annotations

import json
import sys

import click

try:
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    _console = Console(highlight=False)
    _err_console = Console(stderr=True, highlight=False)
except ImportError:
    raise ImportError("The CLI requires click and rich. " "Install them with: pip install deviceinfo[cli]")

from deviceinfo import DeviceInfoConfigError
from deviceinfo.counters import CounterKind, VersionedCounter
from deviceinfo.device import DeviceInfoService
from deviceinfo.storage import StoreError

_KIND_CHOICES = {
    "launches": CounterKind.LAUNCHES,
    "review-prompts": CounterKind.REVIEW_PROMPTS,
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _FixedVersion:
    """Version provider for --app-version."""

    def __init__(self, app_version: str):
        self.app_version = app_version


def _load(config_path: str | None):
    """Load config and bundle. Exits with code 1 on config errors."""
    from deviceinfo.config import build_bundle, load_config

    try:
        config = load_config(config_path)
        bundle = build_bundle(config)
    except DeviceInfoConfigError as e:
        _err_console.print(f"[red]Failed to load configuration: {escape(str(e))}[/red]")
        sys.exit(1)
    return config, bundle


def _build_counter(
    config_path: str | None,
    kind: str,
    namespace: str | None,
    app_version: str | None = None,
) -> VersionedCounter:
    from deviceinfo.config import build_locator

    config, bundle = _load(config_path)
    provider = _FixedVersion(app_version) if app_version else DeviceInfoService(bundle=bundle)
    try:
        return VersionedCounter(
            _KIND_CHOICES[kind],
            storage_namespace=namespace if namespace is not None else config.storage_namespace,
            prefer_synchronized_store=config.prefer_synchronized_store,
            version_provider=provider,
            locator=build_locator(config),
        )
    except StoreError as e:
        _err_console.print(f"[red]Cannot open counter store: {escape(str(e))}[/red]")
        sys.exit(1)


_config_option = click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(),
    help="YAML configuration file.",
)
_kind_option = click.option(
    "--kind",
    type=click.Choice(sorted(_KIND_CHOICES)),
    default="launches",
    show_default=True,
    help="Which counter to use.",
)
_namespace_option = click.option("--namespace", default=None, help="Shared storage namespace.")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """deviceinfo — Device metadata and per-version counters."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command()
def version() -> None:
    """Show the installed deviceinfo version."""
    from deviceinfo import __version__

    click.echo(f"deviceinfo {__version__}")


# ---------------------------------------------------------------------------
# info
# ---------------------------------------------------------------------------


@cli.command()
@_config_option
@click.option("--token", default=None, help="Push token as hex.")
@click.option("--lat", "latitude", type=float, default=None, help="Latitude.")
@click.option("--lng", "longitude", type=float, default=None, help="Longitude.")
@click.option("--null-missing", is_flag=True, help="Emit null for missing values instead of omitting them.")
def info(
    config_path: str | None,
    token: str | None,
    latitude: float | None,
    longitude: float | None,
    null_missing: bool,
) -> None:
    """Print the device info dictionary as JSON."""
    _, bundle = _load(config_path)
    service = DeviceInfoService(bundle=bundle)
    data = service.device_info_dictionary(token, latitude, longitude, null_missing)
    click.echo(json.dumps(data, indent=2))


# ---------------------------------------------------------------------------
# counts
# ---------------------------------------------------------------------------


@cli.command()
@_config_option
@_kind_option
@_namespace_option
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
def counts(config_path: str | None, kind: str, namespace: str | None, json_output: bool) -> None:
    """Show per-version counts and the total."""
    counter = _build_counter(config_path, kind, namespace)
    per_version = counter.counts_for_all_versions()
    total = sum(per_version.values())

    if json_output:
        click.echo(
            json.dumps(
                {
                    "kind": kind,
                    "store": counter.store_kind.value,
                    "versions": per_version,
                    "total": total,
                }
            )
        )
        return

    if not per_version:
        _console.print(f"No {escape(kind)} recorded.")
        return

    table = Table(title=f"{kind} ({counter.store_kind.value} store)")
    table.add_column("Version")
    table.add_column("Count", justify="right")
    for ver, count in sorted(per_version.items()):
        table.add_row(escape(ver), str(count))
    _console.print(table)
    _console.print(f"[bold]Total:[/bold] {total}")


# ---------------------------------------------------------------------------
# increment
# ---------------------------------------------------------------------------


@cli.command()
@_config_option
@_kind_option
@_namespace_option
@click.option("--app-version", default=None, help="Version to count (default: the bundle's version).")
def increment(config_path: str | None, kind: str, namespace: str | None, app_version: str | None) -> None:
    """Increment the counter for the current app version."""
    counter = _build_counter(config_path, kind, namespace, app_version)
    counter.increment_count_for_current_version()
    current = counter.current_version
    _console.print(
        f"[green]{escape(kind)}[/green] for {escape(current)}: {counter.count_for_version(current)} "
        f"(total {counter.total_count_all_versions()})"
    )
