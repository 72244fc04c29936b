"""Resolve command implementation for peerkeeper.

Changes the version of one package in ``package.json`` and brings every
other declared dependency in line with it, so that no dependency's
``peerDependencies`` entry for the package is violated.

The command is a thin shell around :func:`peerkeeper.core.resolver.resolve`:

1. **RunMode** is built from ``--latest``, ``--autoupdate`` and
   ``--check-incompatibilities``.
2. Operator questions go through :func:`peerkeeper.utils.console.choose`.
3. Decisions are printed live as the resolver takes them, followed by a
   summary of everything that changed.

Typical usage::

    # Pick the target version and each replacement interactively
    $ peerkeeper resolve react

    # Fully unattended: newest react, newest compatible dependents
    $ peerkeeper resolve react --latest --autoupdate

    # Preview without touching package.json
    $ peerkeeper resolve react --latest --autoupdate --dry-run --format json
"""

from __future__ import annotations

import sys
import json
import asyncio
from pathlib import Path
from typing import Optional

import click

from peerkeeper.models import DecisionKind, ResolutionDecision, ResolutionReport, RunMode
from peerkeeper.exceptions import PeerKeeperError, PersistenceError
from peerkeeper.context import pass_context, PeerKeeperContext
from peerkeeper.core.manifest_store import dump_manifest
from peerkeeper.core.resolver import resolve as run_resolution
from peerkeeper.utils import (
    choose,
    get_logger,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.resolve")


@click.command()
@click.argument("package")
@click.option(
    "--latest",
    is_flag=True,
    help="Use the newest stable version of PACKAGE (written as ^x.y.z).",
)
@click.option(
    "--check-incompatibilities",
    is_flag=True,
    help="Report dependencies that have no version compatible with PACKAGE.",
)
@click.option(
    "--autoupdate",
    is_flag=True,
    help="Replace incompatible dependencies with their newest compatible version.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Compute all changes without writing package.json.",
)
@click.option(
    "--backup/--no-backup",
    default=None,
    help="Create a timestamped backup of package.json before writing.",
)
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
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def resolve(
    ctx: PeerKeeperContext,
    package: str,
    latest: bool,
    check_incompatibilities: bool,
    autoupdate: bool,
    dry_run: bool,
    backup: Optional[bool],
    manifest: Optional[Path],
    registry: Optional[str],
    format: str,
) -> None:
    """Change PACKAGE's version and fix dependents whose peers reject it.

    Without ``--latest`` the operator picks the target version from the
    newest stable releases. Every other dependency is then checked
    against the chosen version; incompatible ones are replaced by a
    compatible release, picked by the operator or, with
    ``--autoupdate``, the newest one. The manifest is written once at
    the end.

    Exits:
        0 on success, 1 if the target cannot be resolved, the manifest
        is missing or malformed, an operator choice could not be read,
        or the manifest cannot be written.
    """
    mode = RunMode(
        use_latest_target=latest,
        auto_update_dependents=autoupdate,
        report_incompatible_only=check_incompatibilities,
    )

    try:
        report = asyncio.run(
            _resolve_async(
                ctx,
                package,
                mode,
                dry_run=dry_run,
                backup=ctx.config.backup if backup is None else backup,
                manifest=manifest,
                registry=registry or ctx.config.registry_url,
                format=format,
            )
        )

    except PersistenceError as e:
        print_error(f"{e}")
        print_warning(
            "No changes were saved; the computed manifest follows so the write can be retried"
        )
        click.echo(dump_manifest(e.manifest), nl=False)
        sys.exit(1)
    except PeerKeeperError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in resolve command")
        sys.exit(1)

    if format == "json":
        click.echo(json.dumps(report.to_json(), indent=2))
    else:
        _display_summary(report, mode)
    sys.exit(0)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _resolve_async(
    ctx: PeerKeeperContext,
    package: str,
    mode: RunMode,
    *,
    dry_run: bool,
    backup: bool,
    manifest: Optional[Path],
    registry: str,
    format: str,
) -> ResolutionReport:
    """Run the resolver with console-backed listeners."""
    show_progress = format == "table"
    config = ctx.config

    def on_target(name: str, version: str, manifest_value: str) -> None:
        if show_progress:
            print_info(f"Updating {name} to {manifest_value}...")

    def on_decision(decision: ResolutionDecision) -> None:
        if show_progress:
            _display_decision(decision, package, mode)

    logger.info("Resolving %s (mode=%s)", package, mode)

    return await run_resolution(
        package,
        mode,
        manifest_file=manifest,
        registry_url=registry,
        timeout=config.timeout,
        max_retries=config.max_retries,
        prompter=choose,
        target_choice_limit=config.target_choice_limit,
        dependent_choice_limit=config.dependent_choice_limit,
        on_target=on_target,
        on_decision=on_decision,
        dry_run=dry_run,
        backup=backup,
    )


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_decision(decision: ResolutionDecision, target: str, mode: RunMode) -> None:
    """Print one decision as it is taken."""
    if decision.kind is DecisionKind.ALREADY_COMPATIBLE:
        print_success(f"{decision.name} ({decision.installed_range}) is compatible")
    elif decision.kind is DecisionKind.UPDATED:
        print_info(f"{decision.name} ({decision.installed_range}) -> {decision.new_version}")
    elif decision.kind is DecisionKind.NO_COMPATIBLE_VERSION:
        if mode.report_incompatible_only:
            print_warning(f"No compatible version found for {decision.name} with {target}")
    else:
        print_warning(decision.reason or f"Failed to check {decision.name}")


def _display_summary(report: ResolutionReport, mode: RunMode) -> None:
    """Print the changed dependencies and the final status line."""
    console = get_raw_console()
    console.print("")

    rows = [
        {
            "Package": report.target_name,
            "Before": "[dim]-[/dim]",
            "After": report.target_range,
        }
    ]
    rows.extend(
        {
            "Package": d.name,
            "Before": d.installed_range,
            "After": d.new_version or "",
        }
        for d in report.updated
    )
    print_table(
        rows,
        title="Manifest Changes",
        column_styles={
            "Package": {"style": "bold cyan", "no_wrap": True},
            "Before": {"justify": "center", "style": "dim"},
            "After": {"justify": "center", "style": "bold green"},
        },
    )

    incompatible = report.by_kind(DecisionKind.NO_COMPATIBLE_VERSION)
    if incompatible and mode.report_incompatible_only:
        print_warning(
            f"{len(incompatible)} dependenc(ies) have no version compatible with "
            f"{report.target_name}@{report.target_version}"
        )
    if report.failed:
        print_warning(f"{len(report.failed)} dependenc(ies) could not be checked")

    if not report.written:
        print_warning("Dry run mode - no changes applied")
        return

    if report.backup_path is not None:
        print_info(f"Backup created: {report.backup_path}")
    print_success(
        f"{report.manifest_path.name if report.manifest_path else 'package.json'} "
        "updated. Run `npm install` to apply changes."
    )
