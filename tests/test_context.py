from __future__ import annotations

from pathlib import Path

import click
import pytest

from peerkeeper.config import PeerKeeperConfig
from peerkeeper.context import PeerKeeperContext, pass_context


@pytest.mark.unit
class TestPeerKeeperContext:
    """Tests for PeerKeeperContext class."""

    def test_default_initialization(self) -> None:
        ctx = PeerKeeperContext()

        assert ctx.config_path is None
        assert ctx.verbose == 0
        assert ctx.color is True
        assert ctx.config == PeerKeeperConfig()

    def test_built_from_loaded_config(self) -> None:
        config = PeerKeeperConfig(timeout=10, source_path=Path("peerkeeper.toml"))

        ctx = PeerKeeperContext(config, verbose=1, color=False)

        assert ctx.config is config
        assert ctx.config_path == Path("peerkeeper.toml")
        assert ctx.verbose == 1
        assert ctx.color is False

    def test_instances_are_independent(self) -> None:
        ctx1 = PeerKeeperContext()
        ctx2 = PeerKeeperContext()

        ctx1.verbose = 2
        ctx1.color = False
        ctx1.config.timeout = 5

        assert ctx2.verbose == 0
        assert ctx2.color is True
        assert ctx2.config.timeout == 30

    def test_all_attributes_can_be_set(self) -> None:
        ctx = PeerKeeperContext()
        config = PeerKeeperConfig(timeout=10, source_path=Path("peerkeeper.toml"))

        ctx.config_path = Path("peerkeeper.toml")
        ctx.verbose = 2
        ctx.color = False
        ctx.config = config

        assert ctx.config_path == Path("peerkeeper.toml")
        assert ctx.verbose == 2
        assert ctx.color is False
        assert ctx.config is config

    def test_slots_prevents_arbitrary_attributes(self) -> None:
        ctx = PeerKeeperContext()

        with pytest.raises(AttributeError):
            ctx.arbitrary_attribute = "value"  # type: ignore


@pytest.mark.unit
class TestPassContextDecorator:
    """Tests for pass_context decorator."""

    def test_injects_existing_context(self) -> None:
        @click.command()
        @pass_context
        def test_command(ctx: PeerKeeperContext) -> PeerKeeperContext:
            return ctx

        click_ctx = click.Context(click.Command("test"))
        peerkeeper_ctx = PeerKeeperContext()
        click_ctx.obj = peerkeeper_ctx

        assert click_ctx.invoke(test_command) is peerkeeper_ctx

    def test_creates_context_when_missing(self) -> None:
        @click.command()
        @pass_context
        def test_command(ctx: PeerKeeperContext) -> PeerKeeperContext:
            return ctx

        click_ctx = click.Context(click.Command("test"))

        result = click_ctx.invoke(test_command)

        assert isinstance(result, PeerKeeperContext)
        assert result.config.registry_url == "https://registry.npmjs.org"
