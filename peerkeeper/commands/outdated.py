"""Outdated command implementation for peerkeeper.

Reports declared dependencies whose newest stable release is ahead of
the version in use, grouped by how many major versions behind they are.
Read-only: ``package.json`` is never modified.

Typical usage::

    $ peerkeeper outdated
    $ peerkeeper outdated --manifest app/package.json --format json
"""

from __future__ import annotations

import sys
import json
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from peerkeeper.exceptions import PeerKeeperError
from peerkeeper.context import pass_context, PeerKeeperContext
from peerkeeper.core import RegistryClient, find_outdated, load_manifest, manifest_path
from peerkeeper.core.outdated import OutdatedEntry, OutdatedReport
from peerkeeper.utils import (
    HTTPClient,
    colorize_update_type,
    get_logger,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.outdated")

_GROUP_TITLES = {
    "critical": "Critical (5+ major versions behind)",
    "major": "Major (2-4 major versions behind)",
    "one-major": "One major version behind",
    "other": "Minor / patch updates",
}


@click.command()
@click.option(
    "--manifest",
    "-m",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to package.json (default: ./package.json).",
)
@click.option(
    "--registry",
    default=None,
    envvar="PEERKEEPER_REGISTRY",
    help="npm registry base URL.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def outdated(
    ctx: PeerKeeperContext,
    manifest: Optional[Path],
    registry: Optional[str],
    format: str,
) -> None:
    """Report dependencies with newer stable releases.

    The version in use comes from ``node_modules`` when the package is
    installed, otherwise from the newest release matching the declared
    range.

    Exits:
        0 if everything is up to date, 1 if outdated dependencies were
        found or an error occurred.
    """
    try:
        report = asyncio.run(
            _outdated_async(ctx, manifest, registry or ctx.config.registry_url)
        )
    except PeerKeeperError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in outdated command")
        sys.exit(1)

    if format == "json":
        click.echo(json.dumps(report.to_json(), indent=2))
    elif format == "simple":
        _display_simple(report)
    else:
        _display_table(report)

    if format != "json":
        for name, reason in report.errors.items():
            print_warning(f"Could not check {name}: {reason}")
        if report.entries:
            print_warning(f"\n{len(report.entries)} dependenc(ies) are outdated")
        else:
            print_success("All dependencies are up to date!")

    sys.exit(1 if report.entries else 0)


async def _outdated_async(
    ctx: PeerKeeperContext,
    manifest: Optional[Path],
    registry_url: str,
) -> OutdatedReport:
    path = manifest or manifest_path(Path("."))
    loaded = load_manifest(path)
    logger.info("Checking %s for outdated dependencies...", path)

    async with HTTPClient(
        timeout=ctx.config.timeout,
        max_retries=ctx.config.max_retries,
    ) as http:
        registry = RegistryClient(http, registry_url)
        return await find_outdated(loaded, registry, path.parent)


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _row(entry: OutdatedEntry) -> Dict[str, Any]:
    current = entry.current_version
    if not entry.installed:
        current = f"{current} [dim](range)[/dim]"
    return {
        "Package": entry.name,
        "Declared": entry.declared_range,
        "Current": current,
        "Latest": entry.latest_version,
        "Majors Behind": str(entry.major_distance),
        "Update Type": colorize_update_type(entry.update_type),
    }


def _display_table(report: OutdatedReport) -> None:
    """One Rich table per non-empty group, most urgent first."""
    column_styles: Dict[str, Dict[str, Any]] = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Declared": {"justify": "center", "style": "dim"},
        "Current": {"justify": "center"},
        "Latest": {"justify": "center", "style": "bold green"},
        "Majors Behind": {"justify": "right"},
        "Update Type": {"justify": "center"},
    }
    for group, entries in report.groups().items():
        if not entries:
            continue
        rows: List[Dict[str, Any]] = [_row(entry) for entry in entries]
        print_table(rows, title=_GROUP_TITLES[group], column_styles=column_styles)


def _display_simple(report: OutdatedReport) -> None:
    console = get_raw_console()
    for group, entries in report.groups().items():
        if not entries:
            continue
        console.print(f"\n[bold]{_GROUP_TITLES[group]}[/bold]")
        for entry in entries:
            console.print(
                f"  {entry.name}: {entry.current_version} -> {entry.latest_version} "
                f"({entry.update_type})",
                highlight=False,
            )
