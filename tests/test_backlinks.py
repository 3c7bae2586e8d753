"""Tests for rewriting links to renamed headings."""

from __future__ import annotations

import pytest

from headmark.backlinks.references import Position, StaticReferenceIndex
from headmark.backlinks.synchronizer import (
    BacklinkSynchronizer,
    HeaderLinkUpdate,
    heading_matches,
    normalize_spaces,
    rewrite_link,
)
from headmark.backlinks.transaction import DocumentTransaction
from headmark.errors import RollbackError
from headmark.i18n import Translator
from tests.memory_store import MemoryStore


def _raw(link: str, original: str, line: int, col: int = 0) -> dict[str, object]:
    return {
        "link": link,
        "original": original,
        "position": {
            "start": {"line": line, "col": col},
            "end": {"line": line, "col": col + len(original)},
        },
    }


def _sync(
    store: MemoryStore, backlinks: dict[str, dict[str, list[dict[str, object]]]]
) -> tuple[BacklinkSynchronizer, list[str]]:
    notices: list[str] = []
    sync = BacklinkSynchronizer(
        StaticReferenceIndex(backlinks), store, translator=Translator("en"), notify=notices.append
    )
    return sync, notices


class TestMatching:
    def test_normalize_spaces(self) -> None:
        assert normalize_spaces("  1.1\tOld   Title ") == "1.1 Old Title"

    def test_exact_and_partial(self) -> None:
        assert heading_matches("Old Title", "Old Title")
        assert heading_matches("1 Old Title", "Old Title")
        assert heading_matches("Old", "Old Title")
        assert heading_matches("Old\tTitle", "Old Title")
        assert not heading_matches("Other", "Old Title")
        assert not heading_matches("", "Old Title")


class TestRewriteLink:
    def test_wikilink(self) -> None:
        assert rewrite_link("[[A#Old Title]]", "1.1\tOld Title") == "[[A#1.1 Old Title]]"

    def test_wikilink_keeps_alias_and_embed(self) -> None:
        assert rewrite_link("![[A#Old|see]]", "2 Old") == "![[A#2 Old|see]]"

    def test_markdown_link_is_percent_encoded(self) -> None:
        assert (
            rewrite_link("[see](A.md#Old%20Title)", "1.1\tOld Title")
            == "[see](A.md#1.1%20Old%20Title)"
        )

    def test_angle_bracket_destination(self) -> None:
        assert rewrite_link("[see](<A.md#Old Title>)", "1 Old Title") == "[see](<A.md#1 Old Title>)"

    def test_markdown_link_keeps_title(self) -> None:
        assert rewrite_link('[see](A.md#Old "tip")', "1 Old") == '[see](A.md#1%20Old "tip")'
        assert rewrite_link("[see](<A.md#Old> (tip))", "1 Old") == "[see](<A.md#1 Old> (tip))"

    def test_unrecognized_text_unchanged(self) -> None:
        assert rewrite_link("A#Old", "1 Old") == "A#Old"


class TestFindHeadingBacklinks:
    def test_finds_matching_links(self) -> None:
        store = MemoryStore({"A.md": "# Old Title\n", "B.md": "x [[A#Old Title]]\n"})
        sync, _ = _sync(
            store,
            {
                "A.md": {
                    "B.md": [
                        _raw("A#Old Title", "[[A#Old Title]]", 0, 2),
                        _raw("A#Other", "[[A#Other]]", 0, 20),
                        _raw("A", "[[A]]", 0, 30),
                    ],
                    "A.md": [_raw("#Old Title", "[[#Old Title]]", 1)],
                }
            },
        )
        updates = sync.find_heading_backlinks("A.md", "Old Title", "1\tOld Title")
        assert updates == [
            HeaderLinkUpdate("B.md", "[[A#Old Title]]", "[[A#1 Old Title]]", Position(0, 2, 0, 17))
        ]

    def test_without_new_heading_keeps_text(self) -> None:
        store = MemoryStore({"B.md": "[[A#Old]]"})
        sync, _ = _sync(store, {"A.md": {"B.md": [_raw("A#Old", "[[A#Old]]", 0)]}})
        (update,) = sync.find_heading_backlinks("A.md", "Old")
        assert update.new_link_text == update.old_link_text


class TestPlanHeadingRenames:
    def test_exact_match_preferred(self) -> None:
        """`Intro` must not be captured by the rename of `Intro Extended`."""
        store = MemoryStore({"B.md": "[[A#Intro]] [[A#Intro Extended]]"})
        sync, _ = _sync(
            store,
            {
                "A.md": {
                    "B.md": [
                        _raw("A#Intro", "[[A#Intro]]", 0),
                        _raw("A#Intro Extended", "[[A#Intro Extended]]", 0, 12),
                    ]
                }
            },
        )
        updates = sync.plan_heading_renames(
            "A.md", [("Intro Extended", "1\tIntro Extended"), ("Intro", "2\tIntro")]
        )
        assert [u.new_link_text for u in updates] == ["[[A#2 Intro]]", "[[A#1 Intro Extended]]"]

    def test_unchanged_renames_ignored(self) -> None:
        store = MemoryStore({"B.md": "[[A#Intro]]"})
        sync, _ = _sync(store, {"A.md": {"B.md": [_raw("A#Intro", "[[A#Intro]]", 0)]}})
        assert sync.plan_heading_renames("A.md", [("Intro", "Intro")]) == []

    def test_already_rewritten_link_not_planned(self) -> None:
        store = MemoryStore({"B.md": "[[A#1 Intro]]"})
        sync, _ = _sync(store, {"A.md": {"B.md": [_raw("A#1 Intro", "[[A#1 Intro]]", 0)]}})
        assert sync.plan_heading_renames("A.md", [("Intro", "1\tIntro")]) == []


class TestUpdateBacklinks:
    def test_rename_rewrites_source_documents(self) -> None:
        store = MemoryStore(
            {
                "A.md": "# Old Title\n",
                "B.md": "See [[A#Old Title]].\nAgain [[A#Old Title|here]].\n",
            }
        )
        sync, notices = _sync(
            store,
            {
                "A.md": {
                    "B.md": [
                        _raw("A#Old Title", "[[A#Old Title]]", 0, 4),
                        _raw("A#Old Title", "[[A#Old Title|here]]", 1, 6),
                    ]
                }
            },
        )
        updates = sync.find_heading_backlinks("A.md", "Old Title", "1.1\tOld Title")
        assert sync.update_backlinks(updates)
        assert store.docs["B.md"] == (
            "See [[A#1.1 Old Title]].\nAgain [[A#1.1 Old Title|here]].\n"
        )
        assert store.writes == ["B.md"]
        assert notices == ["Updated 2 link(s) to renamed headers"]

    def test_applying_twice_is_a_noop(self) -> None:
        store = MemoryStore({"B.md": "[[A#Old]]"})
        sync, _ = _sync(store, {"A.md": {"B.md": [_raw("A#Old", "[[A#Old]]", 0)]}})
        updates = sync.find_heading_backlinks("A.md", "Old", "1 Old")
        assert sync.update_backlinks(updates)
        assert sync.update_backlinks(updates)
        assert store.docs["B.md"] == "[[A#1 Old]]"
        assert store.writes == ["B.md"]

    def test_rename_with_failed_write_restores_everything(self) -> None:
        """Document A is renumbered and B's link rewritten together; B fails, both restored."""
        store = MemoryStore({"A.md": "# Old Title\n", "B.md": "[[A#Old Title]]\n"})
        store.fail_writes.add("B.md")
        sync, notices = _sync(
            store, {"A.md": {"B.md": [_raw("A#Old Title", "[[A#Old Title]]", 0)]}}
        )

        txn = DocumentTransaction(store)
        txn.stage("A.md", "# 1.1\tOld Title\n")
        updates = sync.find_heading_backlinks("A.md", "Old Title", "1.1\tOld Title")

        assert not sync.update_backlinks(updates, transaction=txn)
        assert store.docs == {"A.md": "# Old Title\n", "B.md": "[[A#Old Title]]\n"}
        assert len(notices) == 1
        assert "rolled back" in notices[0]

    def test_failed_rollback_notifies_and_raises(self) -> None:
        store = MemoryStore({"A.md": "# Old\n", "B.md": "[[A#Old]]\n"})
        store.fail_writes.add("B.md")
        store.fail_restores.add("A.md")
        sync, notices = _sync(store, {"A.md": {"B.md": [_raw("A#Old", "[[A#Old]]", 0)]}})

        txn = DocumentTransaction(store)
        txn.stage("A.md", "# 1\tOld\n")
        updates = sync.find_heading_backlinks("A.md", "Old", "1\tOld")

        with pytest.raises(RollbackError):
            sync.update_backlinks(updates, transaction=txn)
        assert notices and notices[0].startswith("Critical error")

    def test_no_updates_is_success(self) -> None:
        sync, notices = _sync(MemoryStore({}), {})
        assert sync.update_backlinks([])
        assert notices == []

    def test_translated_notice(self) -> None:
        store = MemoryStore({"B.md": "[[A#Old]]"})
        notices: list[str] = []
        sync = BacklinkSynchronizer(
            StaticReferenceIndex({"A.md": {"B.md": [_raw("A#Old", "[[A#Old]]", 0)]}}),
            store,
            translator=Translator("zh"),
            notify=notices.append,
        )
        sync.update_backlinks(sync.find_heading_backlinks("A.md", "Old", "1 Old"))
        assert notices == ["已更新 1 个指向重命名标题的链接"]
