"""Click context object shared by peerkeeper subcommands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from peerkeeper.config import PeerKeeperConfig


class PeerKeeperContext:
    """Per-invocation state built by the ``peerkeeper`` group.

    Attributes:
        config: Loaded settings (defaults when no source was found).
        config_path: File the settings came from, if any.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
    """

    __slots__ = ("config", "config_path", "verbose", "color")

    def __init__(
        self,
        config: Optional[PeerKeeperConfig] = None,
        *,
        verbose: int = 0,
        color: bool = True,
    ) -> None:
        self.config: PeerKeeperConfig = config or PeerKeeperConfig()
        self.config_path: Optional[Path] = self.config.source_path
        self.verbose = verbose
        self.color = color


#: Injects the :class:`PeerKeeperContext`, creating a default one if the
#: command runs outside the group.
pass_context = click.make_pass_decorator(PeerKeeperContext, ensure=True)
