"""Tests for persisted numbering toggles."""

from __future__ import annotations

import json
from pathlib import Path

from headmark.state import STATE_FILENAME, NumberingState, load_state, save_state


def test_missing_file_means_enabled(tmp_path: Path):
    state = load_state(tmp_path)
    assert state == NumberingState(enabled=True, documents={})
    assert state.document_state("a.md") is None
    assert state.is_enabled("a.md")


def test_round_trip(tmp_path: Path):
    state = NumberingState()
    state.toggle_document("notes/Draft.md")
    state.toggle_global()
    save_state(tmp_path, state)

    data = json.loads((tmp_path / STATE_FILENAME).read_text())
    assert data == {"enabled": False, "documents": {"notes/Draft.md": False}}
    assert load_state(tmp_path) == state


def test_toggle_document():
    state = NumberingState()
    assert state.toggle_document("a.md") is False
    assert state.document_state("a.md") is False
    assert not state.is_enabled("a.md")
    assert state.toggle_document("a.md") is True
    assert state.is_enabled("a.md")


def test_global_off_disables_every_document():
    state = NumberingState(documents={"a.md": True})
    state.toggle_global()
    assert not state.is_enabled("a.md")
    assert not state.is_enabled("b.md")


def test_malformed_file_ignored(tmp_path: Path):
    (tmp_path / STATE_FILENAME).write_text("{not json")
    assert load_state(tmp_path) == NumberingState()


def test_non_object_file_ignored(tmp_path: Path):
    (tmp_path / STATE_FILENAME).write_text("[1, 2]")
    assert load_state(tmp_path) == NumberingState()
