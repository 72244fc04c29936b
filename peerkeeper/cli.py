"""
Command-line interface for peerkeeper.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import click

from peerkeeper.config import load_config
from peerkeeper.__version__ import __version__
from peerkeeper.context import PeerKeeperContext
from peerkeeper.exceptions import ConfigurationError, PeerKeeperError
from peerkeeper.utils.logger import get_logger, level_for_verbosity, setup_logging
from peerkeeper.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="PEERKEEPER_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="PEERKEEPER_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="peerkeeper",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """peerkeeper: peer-dependency aware version bumps for package.json.

    \b
    Available commands:
      peerkeeper resolve PACKAGE   Change PACKAGE's version and fix dependents
      peerkeeper outdated          Report outdated dependencies

    \b
    Examples:
      peerkeeper resolve react
      peerkeeper resolve react --latest --autoupdate
      peerkeeper -v outdated

    Use ``peerkeeper COMMAND --help`` for command-specific options.
    """
    level = level_for_verbosity(verbose)
    setup_logging(level=level, verbose=verbose >= 2)

    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    try:
        loaded_config = load_config(config)
    except ConfigurationError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    ctx.obj = PeerKeeperContext(loaded_config, verbose=verbose, color=color)

    logger.debug("peerkeeper v%s", __version__)
    logger.debug("Config path: %s", loaded_config.source_path or "<defaults>")
    logger.debug("Configuration: %s", loaded_config.to_log_dict())


# Register CLI subcommands
from peerkeeper.commands.resolve import resolve  # noqa: E402
from peerkeeper.commands.outdated import outdated  # noqa: E402

cli.add_command(resolve)
cli.add_command(outdated)


def main() -> int:
    """Main entry point for the peerkeeper CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click), e.g. missing package name
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.exceptions.Exit as exc:
        return exc.exit_code

    except click.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    except PeerKeeperError as exc:
        print_error(str(exc))
        logger.debug(
            "PeerKeeperError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
