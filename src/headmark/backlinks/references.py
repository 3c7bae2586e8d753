"""
Link references between documents, and an index that answers "who links here?".

This module provides:
- `Reference`, the one shape the rest of the code sees for a link, whatever produced it
- Link extraction from document text: wikilinks (`[[Target#Heading|alias]]`) and
  Markdown links (`[text](Target.md#Heading)`)
- `VaultReferenceIndex`, which scans a collection through a `DocumentStore`
- `StaticReferenceIndex`, which wraps reference data handed over by a host and
  normalizes it on receipt

Key concepts:
- `Reference.link` is `"<target>#<fragment>"` with any alias removed and percent-escapes
  decoded; `Reference.original` is the exact source text of the link
- Positions are zero-based line/column pairs in the source document
- Links inside fenced code or inline code spans are not references
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import unquote

import marko
from marko import inline

from headmark.transforms.header_lines import CodeFenceTracker
from headmark.vault.store import DocumentStore

WIKILINK_PATTERN = re.compile(r"(!?)\[\[([^\[\]|]+?)(?:\|([^\[\]]*))?\]\]")

MARKDOWN_LINK_PATTERN = re.compile(
    r"(!?)\[([^\]]*)\]\((<[^>]+>|[^)\s]+)(\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\)"
)

_CODE_SPAN_PATTERN = re.compile(r"(`+)(.+?)(?<!`)\1(?!`)")

_EXTERNAL_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")

MARKDOWN_SUFFIX = ".md"


@dataclass(frozen=True)
class Position:
    """Zero-based location of a link in its source document."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int


@dataclass(frozen=True)
class Reference:
    """A link from `source_document` to some target document, optionally to a heading."""

    source_document: str
    link: str
    original: str
    position: Position

    @property
    def target(self) -> str:
        """The document part of the link (may be empty for same-document links)."""
        return self.link.partition("#")[0]

    @property
    def fragment(self) -> str | None:
        """The heading part of the link, or None if the link has no `#`."""
        target, sep, fragment = self.link.partition("#")
        return fragment if sep else None


class ReferenceIndex(Protocol):
    """Answers which documents link to a given document."""

    def backlinks_for(self, document: str) -> dict[str, list[Reference]]:
        """Map of source document -> references in it that point at `document`."""
        ...


# === Host boundary ===


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)  # pyright: ignore[reportUnknownMemberType]
    return getattr(obj, name, None)


def normalize_reference(source_document: str, raw: Any) -> Reference | None:
    """
    Convert a host-provided reference record into a `Reference`.

    Accepts mappings or objects shaped like
    `{link, original, position: {start: {line, col}, end: {line, col}}}`
    (`ch` is accepted in place of `col`). Returns None for records without a position
    or link, which hosts mix in with other cache entries.
    """
    link = _field(raw, "link")
    position = _field(raw, "position")
    if not isinstance(link, str) or position is None:
        return None

    start = _field(position, "start")
    end = _field(position, "end")
    if start is None or end is None:
        return None

    def col(point: Any) -> int:
        value = _field(point, "col")
        if value is None:
            value = _field(point, "ch")
        return int(value or 0)

    original = _field(raw, "original")
    return Reference(
        source_document=source_document,
        link=link,
        original=original if isinstance(original, str) else link,
        position=Position(
            start_line=int(_field(start, "line") or 0),
            start_col=col(start),
            end_line=int(_field(end, "line") or 0),
            end_col=col(end),
        ),
    )


class StaticReferenceIndex:
    """
    Reference index over backlink data supplied by a host, normalized on construction.

    `backlinks` maps target document -> source document -> raw reference records.
    """

    def __init__(self, backlinks: Mapping[str, Mapping[str, Sequence[Any]]]) -> None:
        self._backlinks: dict[str, dict[str, list[Reference]]] = {}
        for target, sources in backlinks.items():
            by_source: dict[str, list[Reference]] = {}
            for source, raw_refs in sources.items():
                refs = [normalize_reference(source, raw) for raw in raw_refs]
                by_source[source] = [r for r in refs if r is not None]
            self._backlinks[target] = by_source

    def backlinks_for(self, document: str) -> dict[str, list[Reference]]:
        return {source: list(refs) for source, refs in self._backlinks.get(document, {}).items()}


# === Link extraction ===


def _mask_code_spans(line: str) -> str:
    """Blank out inline code spans, keeping every other column where it was."""
    return _CODE_SPAN_PATTERN.sub(lambda m: " " * len(m.group(0)), line)


def find_wikilinks(source_document: str, text: str) -> list[Reference]:
    """Find `[[...]]` links outside fenced code and inline code spans."""
    refs: list[Reference] = []
    fence = CodeFenceTracker()
    for line_no, line in enumerate(text.split("\n")):
        if fence.update(line):
            continue
        for match in WIKILINK_PATTERN.finditer(_mask_code_spans(line)):
            refs.append(
                Reference(
                    source_document=source_document,
                    link=match.group(2).strip(),
                    original=match.group(0),
                    position=Position(line_no, match.start(), line_no, match.end()),
                )
            )
    return refs


def _markdown_link_dests(text: str) -> set[str]:
    """Destinations of the real Markdown links in `text`, as Marko parses them."""
    dests: set[str] = set()

    def visit(element: object) -> None:
        if isinstance(element, inline.Link):
            dests.add(unquote(element.dest))
        children = getattr(element, "children", None)
        if isinstance(children, list):
            for child in children:  # pyright: ignore[reportUnknownVariableType]
                visit(child)  # pyright: ignore[reportUnknownArgumentType]

    visit(marko.parse(text))
    return dests


def find_markdown_links(source_document: str, text: str) -> list[Reference]:
    """
    Find local `[text](path#heading)` links. Marko decides which links are real
    (so links in code are skipped); positions come from a line scan.
    """
    dests = _markdown_link_dests(text)
    if not dests:
        return []

    refs: list[Reference] = []
    for line_no, line in enumerate(text.split("\n")):
        for match in MARKDOWN_LINK_PATTERN.finditer(line):
            dest = unquote(match.group(3).strip("<>"))
            if dest not in dests or _EXTERNAL_PATTERN.match(dest):
                continue
            refs.append(
                Reference(
                    source_document=source_document,
                    link=dest,
                    original=match.group(0),
                    position=Position(line_no, match.start(), line_no, match.end()),
                )
            )
    return refs


def find_references(source_document: str, text: str) -> list[Reference]:
    """All wikilinks and local Markdown links in a document, in position order."""
    refs = find_wikilinks(source_document, text) + find_markdown_links(source_document, text)
    return sorted(refs, key=lambda r: (r.position.start_line, r.position.start_col))


# === Vault index ===


class VaultReferenceIndex:
    """
    Reference index over a collection of documents read through a `DocumentStore`.

    Link targets resolve the way note apps resolve them: a path relative to the linking
    document, then a path from the collection root, then the shortest document whose
    file name matches. The `.md` suffix is optional in links.
    """

    def __init__(self, store: DocumentStore, documents: Sequence[str]) -> None:
        self._store: DocumentStore = store
        self._documents: list[str] = sorted(documents)
        self._known: set[str] = set(self._documents)

    def resolve(self, target: str, source: str) -> str | None:
        """The document a link target from `source` points at, or None."""
        target = target.strip()
        if not target:
            return source
        if not target.endswith(MARKDOWN_SUFFIX):
            target += MARKDOWN_SUFFIX

        relative = posixpath.normpath(posixpath.join(posixpath.dirname(source), target))
        if relative in self._known:
            return relative

        absolute = target.lstrip("/")
        if absolute in self._known:
            return absolute

        matches = [
            doc for doc in self._documents if doc == absolute or doc.endswith("/" + absolute)
        ]
        if matches:
            return min(matches, key=lambda d: (d.count("/"), d))
        return None

    def references_from(self, source: str) -> list[Reference]:
        return find_references(source, self._store.read(source))

    def backlinks_for(self, document: str) -> dict[str, list[Reference]]:
        """References from every other document that resolve to `document`."""
        backlinks: dict[str, list[Reference]] = {}
        for source in self._documents:
            if source == document:
                continue
            refs = [
                ref
                for ref in self.references_from(source)
                if self.resolve(ref.target, source) == document
            ]
            if refs:
                backlinks[source] = refs
        return backlinks
