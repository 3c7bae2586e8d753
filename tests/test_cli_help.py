"""Tests for CLI help text."""

from __future__ import annotations

import pytest

from headmark.cli import main


def _render_help(capsys: pytest.CaptureFixture[str], *args: str) -> str:
    """Run `headmark [args] --help` via CLI entrypoint and return captured stdout."""
    with pytest.raises(SystemExit) as exc:
        main([*args, "--help"])
    assert exc.value.code == 0
    return capsys.readouterr().out


def test_help_includes_tagline(capsys: pytest.CaptureFixture[str]) -> None:
    out = _render_help(capsys)
    assert "headmark: Outline numbering for Markdown headers, with backlink sync" in out


def test_help_includes_common_usage(capsys: pytest.CaptureFixture[str]) -> None:
    """Help output should include the concise usage examples."""
    out = _render_help(capsys)
    assert "Common usage:" in out
    assert "headmark number notes/Topic.md" in out
    assert "headmark bulk-remove ." in out
    assert "Per-document control:" in out


def test_help_lists_commands(capsys: pytest.CaptureFixture[str]) -> None:
    out = _render_help(capsys)
    for command in [
        "number",
        "unnumber",
        "analyze",
        "toggle-global",
        "toggle-document",
        "add-directives",
        "reset-directives",
        "remove-directives",
        "bulk-add",
        "bulk-remove",
        "list-documents",
    ]:
        assert command in out


def test_subcommand_help_shows_settings(capsys: pytest.CaptureFixture[str]) -> None:
    out = _render_help(capsys, "number")
    assert "--check" in out
    assert "--start-level" in out
    assert "--no-backlinks" in out
