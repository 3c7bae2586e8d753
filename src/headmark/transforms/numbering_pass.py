"""
Full-document numbering passes.

`number_headers()` walks a document top to bottom once, skipping fenced code, and
returns the line edits needed to insert or refresh header numbers. `remove_header_numbers()`
is the mirror pass that strips numbers from every in-range header.

Both passes are pure: they return `LineEdit` records and never touch a buffer. Applying
the edits is the caller's job (`apply_line_edits()` for plain text, or an editor surface).

There is no incremental patching. After headers are added, moved or deleted the caller
runs a fresh pass, which converges in one step: running a pass twice in a row with the
same config yields no edits the second time.

EXAMPLE
-------
Input (start level 1, end level 2, tab header separator):
    # Intro
    ## A
    ## B
    # Next

Output:
    # 1<TAB>Intro
    ## 1.1<TAB>A
    ## 1.2<TAB>B
    # 2<TAB>Next
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from headmark.transforms.config_resolver import NumberingConfig
from headmark.transforms.header_lines import (
    SPACE_SEPARATOR,
    CodeFenceTracker,
    adjusted_level,
    compose_inserted,
    compose_updated,
    header_level,
    heading_text,
    is_header,
    needs_insert,
    needs_update,
    split_header,
    strip_number,
)
from headmark.transforms.outline_numbers import OutlineCounter

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineEdit:
    """
    One header line rewrite.

    `old_heading` and `new_heading` are the plain heading texts (no `#` markers),
    which is what links to the heading refer to.
    """

    line_index: int
    old_line: str
    new_line: str
    old_heading: str
    new_heading: str

    @property
    def renames_heading(self) -> bool:
        return self.old_heading != self.new_heading


def _split_lines(text: str | Sequence[str]) -> Sequence[str]:
    return text.split("\n") if isinstance(text, str) else text


def _numbered_headers(
    lines: Sequence[str], config: NumberingConfig
) -> Iterator[tuple[int, str, int]]:
    """Yield `(index, line, raw_level)` for each header in the configured range, outside fences."""
    fence = CodeFenceTracker()
    for index, line in enumerate(lines):
        if fence.update(line):
            continue
        if not is_header(line):
            continue
        raw_level = header_level(line)
        if adjusted_level(raw_level, config.start_level) <= 0 or raw_level > config.end_level:
            continue
        yield index, line, raw_level


def _warn_if_title_number(
    line: str, new_line: str, number: str, config: NumberingConfig, header_count: int
) -> None:
    """
    Warn when a space-separated header starts with a number no pass over this document
    could have written, such as `# 2024 Review`. The update replaces it all the same.
    """
    token = split_header(line, SPACE_SEPARATOR).number or ""
    parts = token.split(config.number_separator)
    limit = config.start_number + header_count - 1
    if len(parts) == len(number.split(config.number_separator)) and all(
        part.isdigit() and int(part) <= limit for part in parts
    ):
        return
    log.warning(
        "Header %r starts with %r, which looks like title text; replaced to give %r",
        line,
        token,
        new_line,
    )


def number_headers(text: str | Sequence[str], config: NumberingConfig) -> list[LineEdit]:
    """
    Compute the edits that insert or update header numbers.

    Accepts the document text or its lines. Returns no edits when `config.enabled` is false.
    """
    if not config.enabled:
        return []

    lines = _split_lines(text)
    counter = OutlineCounter(config.start_number, config.number_separator)
    sep = config.header_separator
    edits: list[LineEdit] = []
    headers = list(_numbered_headers(lines, config))

    for index, line, raw_level in headers:
        number = counter.advance(adjusted_level(raw_level, config.start_level))

        if needs_insert(line, sep):
            new_line = compose_inserted(line, raw_level, number, sep)
        elif needs_update(number, line, sep):
            new_line = compose_updated(line, raw_level, number, sep)
            if sep == SPACE_SEPARATOR:
                _warn_if_title_number(line, new_line, number, config, len(headers))
        else:
            continue

        edits.append(
            LineEdit(
                line_index=index,
                old_line=line,
                new_line=new_line,
                old_heading=heading_text(line),
                new_heading=heading_text(new_line),
            )
        )

    return edits


def remove_header_numbers(text: str | Sequence[str], config: NumberingConfig) -> list[LineEdit]:
    """
    Compute the edits that strip numbers from every in-range header.

    Runs regardless of `config.enabled`, so numbering can be cleaned up after it was
    switched off.
    """
    lines = _split_lines(text)
    edits: list[LineEdit] = []

    for index, line, _ in _numbered_headers(lines, config):
        new_line = strip_number(line, config.header_separator)
        if new_line == line:
            continue
        edits.append(
            LineEdit(
                line_index=index,
                old_line=line,
                new_line=new_line,
                old_heading=heading_text(line),
                new_heading=heading_text(new_line),
            )
        )

    return edits


def apply_line_edits(text: str, edits: Sequence[LineEdit]) -> str:
    """
    Apply edits to document text. An edit whose `old_line` no longer matches the
    current line is skipped.
    """
    lines = text.split("\n")
    for edit in edits:
        if edit.line_index >= len(lines) or lines[edit.line_index] != edit.old_line:
            log.debug("Skipping stale edit at line %d", edit.line_index)
            continue
        lines[edit.line_index] = edit.new_line
    return "\n".join(lines)


def number_document(text: str, config: NumberingConfig) -> tuple[str, list[LineEdit]]:
    """Number a whole document. Returns the new text and the edits applied."""
    edits = number_headers(text, config)
    return apply_line_edits(text, edits), edits


def unnumber_document(text: str, config: NumberingConfig) -> tuple[str, list[LineEdit]]:
    """Strip numbering from a whole document. Returns the new text and the edits applied."""
    edits = remove_header_numbers(text, config)
    return apply_line_edits(text, edits), edits
