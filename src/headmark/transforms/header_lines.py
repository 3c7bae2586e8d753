"""
Header line classification and number-block editing for Markdown headers.

This module provides:
- Header detection (`is_header`) and nominal level (`header_level`)
- A code fence tracker so document scans can skip header-like text in code blocks
- The header line codec: decide insert vs update vs noop, compose the rewritten line,
  and strip an existing number back out

Key concepts:
- A header line is 1-6 `#` characters, a space, then title text
- The "number block" sits between the header markers and the header separator:
  `## 1.2<TAB>Details` has number block `1.2` and title `Details`
- Two header separator families are supported: tab and space. With a tab the number
  block is everything before the first tab; with a space it is the first
  space-delimited token. Either way the block only counts as a number when it is
  digits joined by one of `. , / -`

Usage:
    from headmark.transforms.header_lines import compose_inserted, header_level, is_header

    if is_header(line) and needs_insert(line, "\\t"):
        line = compose_inserted(line, header_level(line), "1.2", "\\t")
"""

from __future__ import annotations

import re
from dataclasses import dataclass

FENCE_MARKER = "```"

TAB_SEPARATOR = "\t"
SPACE_SEPARATOR = " "

HEADER_SEPARATORS = (TAB_SEPARATOR, SPACE_SEPARATOR)
NUMBER_SEPARATORS = (".", ",", "/", "-")

_HEADER_PATTERN = re.compile(r"^#{1,6} .+")

_NUMBER_BLOCK_PATTERN = re.compile(r"^\d+(?:[.,/\-]\d+)*$")


# === Header Classifier ===


def is_header(line: str) -> bool:
    """
    True if the trimmed line is 1 to 6 `#` characters, a space, and at least one
    more character.
    """
    return _HEADER_PATTERN.match(line.strip()) is not None


def header_level(line: str) -> int:
    """Count of leading `#` characters (0 if none). The line is not trimmed."""
    return len(line) - len(line.lstrip("#"))


def adjusted_level(raw_level: int, start_level: int) -> int:
    """Depth of a header relative to the first numbered level (H`start_level` is depth 1)."""
    return raw_level - start_level + 1


# === Code-Fence Tracker ===


@dataclass
class CodeFenceTracker:
    """
    One-bit state machine over the lines of a document.

    A line beginning with the fence marker toggles the state. If the marker appears
    again later on the same line, the state is toggled a second time, so a single-line
    fence like ```` ```code``` ```` leaves the state unchanged.
    """

    inside: bool = False

    def update(self, line: str) -> bool:
        """Feed the next line. Returns True while inside a fenced code block."""
        if line.startswith(FENCE_MARKER):
            self.inside = not self.inside
            # NOTE: a fence that opens and closes on one line nets to no change.
            if FENCE_MARKER in line[len(FENCE_MARKER) :]:
                self.inside = not self.inside
        return self.inside

    def reset(self) -> None:
        self.inside = False


# === Header Line Codec ===


@dataclass(frozen=True)
class HeaderParts:
    """
    A header line split into markers, optional number block and title.

    Examples (tab separator):
    - "## Details" -> HeaderParts("##", None, "Details")
    - "## 1.2\\tDetails" -> HeaderParts("##", "1.2", "Details")
    """

    markers: str
    number: str | None
    title: str


@dataclass(frozen=True)
class Header:
    """A header as seen by one numbering pass. Derived from the line, never stored."""

    raw_level: int
    adjusted_level: int
    text: str
    has_number: bool
    number_text: str | None


def split_header(line: str, header_separator: str) -> HeaderParts:
    """
    Split a header line into its markers, number block and title.

    The title is everything after the markers and the single following space when
    no number block is recognized.
    """
    markers = line[: header_level(line)]
    body = line[len(markers) :]
    if body.startswith(" "):
        body = body[1:]

    if header_separator == SPACE_SEPARATOR:
        token, sep, rest = body.partition(SPACE_SEPARATOR)
    else:
        token, sep, rest = body.partition(header_separator)

    if sep and _NUMBER_BLOCK_PATTERN.match(token):
        return HeaderParts(markers=markers, number=token, title=rest)
    return HeaderParts(markers=markers, number=None, title=body)


def heading_text(line: str) -> str:
    """Plain heading text: the line without its `#` markers and surrounding whitespace."""
    return line.strip().lstrip("#").strip()


def needs_insert(line: str, header_separator: str) -> bool:
    """True if the header has no number block yet."""
    return split_header(line, header_separator).number is None


def needs_update(number_text: str, line: str, header_separator: str) -> bool:
    """True if the header has a number block whose text differs from `number_text`."""
    current = split_header(line, header_separator).number
    return current is not None and current != number_text


def strip_number(line: str, header_separator: str) -> str:
    """
    Remove the number block and the header separator after it.

    Returns the line unchanged if it has no recognizable number block.
    """
    parts = split_header(line, header_separator)
    if parts.number is None:
        return line
    return f"{parts.markers} {parts.title}"


def compose_inserted(line: str, level: int, number_text: str, header_separator: str) -> str:
    """Prefix the header's title with `number_text` and the header separator."""
    title = split_header(line, header_separator).title
    return "#" * level + " " + number_text + header_separator + title


def compose_updated(line: str, level: int, number_text: str, header_separator: str) -> str:
    """Replace only the existing number block, keeping the title text."""
    parts = split_header(line, header_separator)
    if parts.number is None:
        return line
    return "#" * level + " " + number_text + header_separator + parts.title


def parse_header(line: str, start_level: int, header_separator: str) -> Header | None:
    """Build a `Header` for a header line, or return None for any other line."""
    if not is_header(line):
        return None
    raw = header_level(line)
    parts = split_header(line, header_separator)
    return Header(
        raw_level=raw,
        adjusted_level=adjusted_level(raw, start_level),
        text=parts.title,
        has_number=parts.number is not None,
        number_text=parts.number,
    )
