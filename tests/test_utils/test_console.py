from __future__ import annotations

import sys
from typing import Generator
from unittest.mock import patch

import click
import pytest
from rich.table import Table
from rich.console import Console

from peerkeeper.exceptions import OperatorUnavailable
from peerkeeper.utils.console import (
    PEERKEEPER_THEME,
    _get_console,
    _should_use_color,
    choose,
    colorize_update_type,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Reset the console singleton around each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("CI", raising=False)


# ==============================================================================
# Console lifecycle
# ==============================================================================


@pytest.mark.unit
class TestThemeConfiguration:
    """Tests for PEERKEEPER_THEME."""

    @pytest.mark.parametrize("style_name", ["success", "error", "warning", "info", "dim"])
    def test_theme_has_style(self, style_name: str) -> None:
        assert style_name in PEERKEEPER_THEME.styles


@pytest.mark.unit
class TestShouldUseColor:
    """Tests for _should_use_color environment detection."""

    def test_no_color_env_disables_color(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        with patch.object(sys.stdout, "isatty", return_value=True):
            assert _should_use_color() is False

    def test_ci_env_disables_color(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CI", "true")
        with patch.object(sys.stdout, "isatty", return_value=True):
            assert _should_use_color() is False

    def test_tty_enables_color(self, clean_env: None) -> None:
        with patch.object(sys.stdout, "isatty", return_value=True):
            assert _should_use_color() is True

    def test_non_tty_disables_color(self, clean_env: None) -> None:
        with patch.object(sys.stdout, "isatty", return_value=False):
            assert _should_use_color() is False

    def test_isatty_error_disables_color(self, clean_env: None) -> None:
        with patch.object(sys.stdout, "isatty", side_effect=OSError("closed")):
            assert _should_use_color() is False


@pytest.mark.unit
class TestGetConsole:
    """Tests for the console singleton."""

    def test_singleton(self) -> None:
        assert _get_console() is _get_console()
        assert get_raw_console() is _get_console()

    def test_returns_rich_console(self) -> None:
        assert isinstance(_get_console(), Console)

    def test_reconfigure_creates_new_instance(self) -> None:
        first = _get_console()
        reconfigure_console()

        assert _get_console() is not first

    def test_no_color_respected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        reconfigure_console()

        assert _get_console().no_color is True


# ==============================================================================
# Status messages
# ==============================================================================


@pytest.mark.unit
class TestStatusMessages:
    """Tests for print_success / print_error / print_warning / print_info."""

    def test_print_success(self) -> None:
        with patch.object(Console, "print") as mock_print:
            print_success("react (^18.2.0) is compatible")

        mock_print.assert_called_once_with("[OK] react (^18.2.0) is compatible", style="success")

    def test_print_error(self) -> None:
        with patch.object(Console, "print") as mock_print:
            print_error("package.json not found")

        mock_print.assert_called_once_with("[ERROR] package.json not found", style="error")

    def test_print_warning(self) -> None:
        with patch.object(Console, "print") as mock_print:
            print_warning("Failed to check foo")

        mock_print.assert_called_once_with("[WARNING] Failed to check foo", style="warning")

    def test_custom_prefix(self) -> None:
        with patch.object(Console, "print") as mock_print:
            print_success("Done", prefix="✓")

        mock_print.assert_called_once_with("✓ Done", style="success")

    def test_print_info_has_no_prefix(self) -> None:
        with patch.object(Console, "print") as mock_print:
            print_info("Updating react to ^19.1.0...")

        mock_print.assert_called_once_with("Updating react to ^19.1.0...", style="info")


# ==============================================================================
# Tables
# ==============================================================================


@pytest.mark.unit
class TestPrintTable:
    """Tests for print_table."""

    def test_prints_table(self) -> None:
        data = [
            {"Package": "react-dom", "Before": "^18.2.0", "After": "19.1.0"},
            {"Package": "react-redux", "Before": "^8.0.0", "After": "9.2.0"},
        ]

        with patch.object(Console, "print") as mock_print:
            print_table(data, title="Manifest Changes")

        table = mock_print.call_args[0][0]
        assert isinstance(table, Table)
        assert table.title == "Manifest Changes"
        assert [c.header for c in table.columns] == ["Package", "Before", "After"]
        assert table.row_count == 2

    def test_empty_data_prints_nothing(self) -> None:
        with patch.object(Console, "print") as mock_print:
            print_table([])

        mock_print.assert_not_called()

    def test_custom_headers_and_styles(self) -> None:
        data = [{"a": "1", "b": "2"}]

        with patch.object(Console, "print") as mock_print:
            print_table(
                data,
                headers=["b"],
                column_styles={"b": {"justify": "right", "style": "bold"}},
            )

        table = mock_print.call_args[0][0]
        assert [c.header for c in table.columns] == ["b"]
        assert table.columns[0].justify == "right"


# ==============================================================================
# Operator choice
# ==============================================================================


@pytest.mark.unit
class TestChoose:
    """Tests for choose."""

    def test_returns_selected_value(self) -> None:
        with patch.object(Console, "print"), patch(
            "peerkeeper.utils.console.click.prompt", return_value=2
        ) as mock_prompt:
            selected = choose("Select a stable version for react:", ["19.1.0", "19.0.0"])

        assert selected == "19.0.0"
        assert mock_prompt.call_args.args == ("Selection",)

    def test_lists_numbered_choices(self) -> None:
        with patch.object(Console, "print") as mock_print, patch(
            "peerkeeper.utils.console.click.prompt", return_value=1
        ):
            choose("Pick:", ["2.0.0", "1.0.0"])

        printed = [call.args[0] for call in mock_print.call_args_list if call.args]
        assert printed[0] == "Pick:"
        assert printed[1].endswith(" 2.0.0") and "1)" in printed[1]
        assert printed[2].endswith(" 1.0.0") and "2)" in printed[2]

    def test_prompt_range_matches_choices(self) -> None:
        with patch.object(Console, "print"), patch(
            "peerkeeper.utils.console.click.prompt", return_value=1
        ) as mock_prompt:
            choose("Pick:", ["a", "b", "c"])

        range_type = mock_prompt.call_args.kwargs["type"]
        assert isinstance(range_type, click.IntRange)
        assert (range_type.min, range_type.max) == (1, 3)

    def test_abort_raises_operator_unavailable(self) -> None:
        with patch.object(Console, "print"), patch(
            "peerkeeper.utils.console.click.prompt", side_effect=click.Abort()
        ):
            with pytest.raises(OperatorUnavailable, match="No selection received"):
                choose("Pick:", ["1.0.0"])

    def test_empty_choices_rejected(self) -> None:
        with pytest.raises(ValueError):
            choose("Pick:", [])


@pytest.mark.unit
class TestColorizeUpdateType:
    """Tests for colorize_update_type."""

    @pytest.mark.parametrize(
        "update_type, expected",
        [
            ("major", "[red]major[/red]"),
            ("minor", "[yellow]minor[/yellow]"),
            ("patch", "[green]patch[/green]"),
            ("MAJOR", "[red]MAJOR[/red]"),
        ],
    )
    def test_known_types(self, update_type: str, expected: str) -> None:
        assert colorize_update_type(update_type) == expected

    def test_unknown_type_unchanged(self) -> None:
        assert colorize_update_type("same") == "same"
