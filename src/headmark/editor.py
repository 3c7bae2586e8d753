"""
Keystroke handling for header lines over a minimal line-addressed editor surface.

`LineBuffer` is the smallest editor the numbering code needs: read and write lines by
index, insert lines, and track a cursor. A host with a real editor wraps it or provides
the same methods.

`HeaderEditor` handles the two keys that change header structure while typing:

- Enter on a header line splits the line at the cursor, moves the cursor to the start of
  the new line, and renumbers after a short debounce if numbering is on for the document.
- Backspace on a header line deletes the character before the cursor and renumbers, since
  deleting `#` markers can change a header's level.

Keys pressed anywhere else are left to the host (the handlers return False).
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from headmark.config import AutoNumberingMode, Settings
from headmark.transforms.config_resolver import (
    DocumentStateLookup,
    NumberingConfig,
    resolve_numbering_config,
)
from headmark.transforms.header_lines import is_header
from headmark.transforms.level_analysis import HeaderAnalysisCache
from headmark.transforms.numbering_pass import LineEdit, number_headers

ENTER_DEBOUNCE_SECONDS = 0.01


@dataclass
class Cursor:
    line: int = 0
    col: int = 0


class LineBuffer:
    """In-memory document addressed by line, with a single cursor."""

    def __init__(self, text: str = "", cursor: Cursor | None = None) -> None:
        self.lines: list[str] = text.split("\n")
        self.cursor: Cursor = cursor or Cursor()

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def get_line(self, index: int) -> str:
        return self.lines[index]

    def set_line(self, index: int, text: str) -> None:
        self.lines[index] = text

    def insert_line(self, index: int, text: str) -> None:
        self.lines.insert(index, text)

    def get_value(self) -> str:
        return "\n".join(self.lines)

    def set_cursor(self, line: int, col: int) -> None:
        line = max(0, min(line, len(self.lines) - 1))
        col = max(0, min(col, len(self.lines[line])))
        self.cursor = Cursor(line, col)

    def apply_edits(self, edits: Sequence[LineEdit]) -> int:
        """Apply edits whose `old_line` still matches. Returns how many were applied."""
        applied = 0
        for edit in edits:
            if edit.line_index < len(self.lines) and self.lines[edit.line_index] == edit.old_line:
                self.lines[edit.line_index] = edit.new_line
                applied += 1
        return applied


class HeaderEditor:
    """
    Enter and Backspace handling for one open document.

    `on_renumber` receives the edits of every renumbering triggered by a key press, so a
    caller can sync backlinks for renamed headings.
    """

    def __init__(
        self,
        buffer: LineBuffer,
        settings: Settings,
        *,
        document: str | None = None,
        global_enabled: bool = True,
        document_state: DocumentStateLookup | None = None,
        analysis_cache: HeaderAnalysisCache | None = None,
        on_renumber: Callable[[list[LineEdit]], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        debounce: float = ENTER_DEBOUNCE_SECONDS,
    ) -> None:
        self.buffer = buffer
        self.settings = settings
        self.document = document
        self.global_enabled = global_enabled
        self._document_state = document_state
        self._analysis_cache = analysis_cache
        self._on_renumber = on_renumber
        self._sleep = sleep
        self._debounce = debounce

    def config(self) -> NumberingConfig:
        return resolve_numbering_config(
            self.settings,
            self.buffer.get_value(),
            document=self.document,
            global_enabled=self.global_enabled,
            document_state=self._document_state,
            analysis_cache=self._analysis_cache,
        )

    def _on_header_line(self) -> bool:
        return is_header(self.buffer.get_line(self.buffer.cursor.line))

    def renumber(self) -> list[LineEdit]:
        """Run a numbering pass over the buffer and apply it."""
        config = self.config()
        if not config.enabled:
            return []
        edits = number_headers(self.buffer.lines, config)
        self.buffer.apply_edits(edits)
        if edits and self._on_renumber is not None:
            self._on_renumber(edits)
        return edits

    def press_enter(self) -> bool:
        if self.settings.mode == AutoNumberingMode.off or not self._on_header_line():
            return False

        cursor = self.buffer.cursor
        line = self.buffer.get_line(cursor.line)
        self.buffer.set_line(cursor.line, line[: cursor.col])
        self.buffer.insert_line(cursor.line + 1, line[cursor.col :])
        self.buffer.set_cursor(cursor.line + 1, 0)

        if self.config().enabled:
            self._sleep(self._debounce)
            self.renumber()
        return True

    def press_backspace(self) -> bool:
        if not self._on_header_line():
            return False

        cursor = self.buffer.cursor
        if cursor.col == 0:
            return False

        line = self.buffer.get_line(cursor.line)
        self.buffer.set_line(cursor.line, line[: cursor.col - 1] + line[cursor.col :])
        self.buffer.set_cursor(cursor.line, cursor.col - 1)

        if self.settings.mode == AutoNumberingMode.on:
            self.renumber()
        return True
