"""
Keep links to renamed headings working.

When numbering rewrites a heading (`Old Title` becomes `1.1<TAB>Old Title`), links in
other documents such as `[[A#Old Title]]` stop resolving. `BacklinkSynchronizer` finds
those links through a `ReferenceIndex` and rewrites them, committing every changed
document together or not at all.

MATCHING
--------
A link's heading fragment matches a heading when, after collapsing runs of whitespace
(tabs included) to single spaces, the two are equal or either contains the other. The
containment rule tolerates numbering that was already partly applied
(`[[A#1 Old Title]]` still matches `Old Title`). When several renames in one pass
could match the same link, an exact match wins over a containment match.

REWRITING
---------
Only the fragment changes. Targets, aliases and link text are kept:
- `[[A#Old Title|see here]]` -> `[[A#1.1 Old Title|see here]]`
- `[see](A.md#Old%20Title)` -> `[see](A.md#1.1%20Old%20Title)`

Rewrites are line-level substitutions of the link's original text, so applying the same
update twice changes nothing the second time.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from urllib.parse import quote

from headmark.backlinks.references import (
    MARKDOWN_LINK_PATTERN,
    WIKILINK_PATTERN,
    Position,
    Reference,
    ReferenceIndex,
)
from headmark.backlinks.transaction import DocumentTransaction
from headmark.errors import BacklinkUpdateError, RollbackError
from headmark.i18n import Translator
from headmark.vault.store import DocumentStore

log = logging.getLogger(__name__)

Notifier = Callable[[str], None]


@dataclass
class HeaderLinkUpdate:
    """One link in one source document that must be rewritten."""

    source_document: str
    old_link_text: str
    new_link_text: str
    position: Position


def normalize_spaces(text: str) -> str:
    """Collapse any whitespace run (tabs included) to one space and trim."""
    return re.sub(r"\s+", " ", text).strip()


def heading_matches(fragment: str, heading: str) -> bool:
    a = normalize_spaces(fragment)
    b = normalize_spaces(heading)
    if not a or not b:
        return False
    return a == b or b in a or a in b


def rewrite_link(original: str, new_heading: str) -> str:
    """Return `original` with its heading fragment replaced by `new_heading`."""
    heading = normalize_spaces(new_heading)

    wikilink = WIKILINK_PATTERN.fullmatch(original)
    if wikilink:
        bang, link, alias = wikilink.group(1), wikilink.group(2), wikilink.group(3)
        target = link.partition("#")[0]
        suffix = f"|{alias}" if alias is not None else ""
        return f"{bang}[[{target}#{heading}{suffix}]]"

    md_link = MARKDOWN_LINK_PATTERN.fullmatch(original)
    if md_link:
        bang, text, dest = md_link.group(1), md_link.group(2), md_link.group(3)
        title = md_link.group(4) or ""
        if dest.startswith("<") and dest.endswith(">"):
            path = dest[1:-1].partition("#")[0]
            new_dest = f"<{path}#{heading}>"
        else:
            path = dest.partition("#")[0]
            new_dest = f"{path}#{quote(heading, safe='')}"
        return f"{bang}[{text}]({new_dest}{title})"

    return original


class BacklinkSynchronizer:
    def __init__(
        self,
        index: ReferenceIndex,
        store: DocumentStore,
        *,
        translator: Translator | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self._index: ReferenceIndex = index
        self._store: DocumentStore = store
        self._translator: Translator = translator or Translator()
        self._notify: Notifier = notify or (lambda _message: None)

    def _heading_references(self, target_document: str) -> list[Reference]:
        refs: list[Reference] = []
        for source, source_refs in self._index.backlinks_for(target_document).items():
            if source == target_document:
                continue
            refs.extend(r for r in source_refs if r.fragment)
        return refs

    def find_heading_backlinks(
        self, target_document: str, old_heading: str, new_heading: str | None = None
    ) -> list[HeaderLinkUpdate]:
        """
        Find links from other documents to `old_heading` in `target_document`.

        Each update keeps the link's original text and position. Its new text is the
        link rewritten to `new_heading`, or the original text when no new heading is given.
        """
        updates: list[HeaderLinkUpdate] = []
        for ref in self._heading_references(target_document):
            assert ref.fragment is not None
            if not heading_matches(ref.fragment, old_heading):
                continue
            new_text = rewrite_link(ref.original, new_heading) if new_heading else ref.original
            updates.append(
                HeaderLinkUpdate(
                    source_document=ref.source_document,
                    old_link_text=ref.original,
                    new_link_text=new_text,
                    position=ref.position,
                )
            )
        log.debug("Found %d link(s) to %s#%s", len(updates), target_document, old_heading)
        return updates

    def plan_heading_renames(
        self, target_document: str, renames: Sequence[tuple[str, str]]
    ) -> list[HeaderLinkUpdate]:
        """
        Updates for every link affected by a set of `(old_heading, new_heading)` renames
        made in one pass. Each link is rewritten at most once.
        """
        renames = [(old, new) for old, new in renames if old != new]
        if not renames:
            return []

        updates: list[HeaderLinkUpdate] = []
        for ref in self._heading_references(target_document):
            assert ref.fragment is not None
            fragment = normalize_spaces(ref.fragment)
            exact = [new for old, new in renames if normalize_spaces(old) == fragment]
            partial = [new for old, new in renames if heading_matches(fragment, old)]
            candidates = exact or partial
            if not candidates:
                continue
            new_text = rewrite_link(ref.original, candidates[0])
            if new_text == ref.original:
                continue
            updates.append(
                HeaderLinkUpdate(
                    source_document=ref.source_document,
                    old_link_text=ref.original,
                    new_link_text=new_text,
                    position=ref.position,
                )
            )
        return updates

    def stage_backlinks(
        self, transaction: DocumentTransaction, updates: Sequence[HeaderLinkUpdate]
    ) -> int:
        """
        Apply updates in memory, one document at a time, and stage the results.
        Returns the number of links actually changed.
        """
        by_document: dict[str, list[HeaderLinkUpdate]] = {}
        for update in updates:
            by_document.setdefault(update.source_document, []).append(update)

        changed = 0
        for document, doc_updates in by_document.items():
            lines = transaction.read(document).split("\n")
            doc_changed = 0
            for update in doc_updates:
                line_no = update.position.start_line
                if line_no >= len(lines):
                    continue
                new_line = lines[line_no].replace(update.old_link_text, update.new_link_text, 1)
                if new_line != lines[line_no]:
                    lines[line_no] = new_line
                    doc_changed += 1
            if doc_changed:
                transaction.stage(document, "\n".join(lines))
                changed += doc_changed
        return changed

    def update_backlinks(
        self,
        updates: Sequence[HeaderLinkUpdate],
        *,
        transaction: DocumentTransaction | None = None,
    ) -> bool:
        """
        Rewrite the links and commit. With `transaction`, the links are staged into it
        and committed together with whatever it already holds.

        Returns False if a write failed and everything was rolled back. Raises
        `RollbackError` (after notifying) if the rollback itself failed.
        """
        if not updates and transaction is None:
            return True

        txn = transaction or DocumentTransaction(self._store)
        changed = self.stage_backlinks(txn, updates)

        t = self._translator.t
        try:
            txn.commit()
        except BacklinkUpdateError as e:
            log.error("Backlink update rolled back: %s", e)
            self._notify(t("notices.backlinksRolledBack", error=e.cause))
            return False
        except RollbackError as e:
            log.critical("Backlink rollback failed: %s", e)
            self._notify(
                t("notices.rollbackFailed", documents=", ".join(e.documents), error=e.cause)
            )
            raise

        if changed:
            log.info("Updated %d backlink(s)", changed)
            self._notify(t("notices.backlinksUpdated", count=changed))
        return True
