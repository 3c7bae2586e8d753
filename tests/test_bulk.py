"""Tests for paced bulk numbering passes."""

from __future__ import annotations

from headmark.bulk import NO_PACING, Pacing, bulk_add_numbering, bulk_remove_numbering
from headmark.config import Settings
from headmark.state import NumberingState
from tests.memory_store import MemoryStore


def _vault(count: int) -> MemoryStore:
    return MemoryStore({f"doc{i}.md": f"# Title {i}\n## Part\n" for i in range(count)})


class TestBulkAdd:
    def test_numbers_every_document(self) -> None:
        store = _vault(3)
        result = bulk_add_numbering(store, sorted(store.docs), Settings(), pacing=NO_PACING)
        assert result.processed == 3
        assert result.modified_count == 3
        assert store.docs["doc0.md"] == "# 1\tTitle 0\n## 1.1\tPart\n"

    def test_unchanged_documents_not_written(self) -> None:
        store = MemoryStore({"a.md": "# 1\tA\n", "b.md": "# B\n"})
        result = bulk_add_numbering(store, ["a.md", "b.md"], Settings(), pacing=NO_PACING)
        assert result.modified == ["b.md"]
        assert store.writes == ["b.md"]

    def test_respects_toggle_state(self) -> None:
        store = MemoryStore({"a.md": "# A\n", "b.md": "# B\n"})
        state = NumberingState(documents={"a.md": False})
        result = bulk_add_numbering(
            store, ["a.md", "b.md"], Settings(), state=state, pacing=NO_PACING
        )
        assert result.modified == ["b.md"]
        assert store.docs["a.md"] == "# A\n"

    def test_globally_disabled_changes_nothing(self) -> None:
        store = _vault(2)
        result = bulk_add_numbering(
            store, sorted(store.docs), Settings(), state=NumberingState(enabled=False), pacing=NO_PACING
        )
        assert result.processed == 2
        assert result.modified == []

    def test_failure_does_not_stop_the_pass(self) -> None:
        store = _vault(3)
        store.fail_writes.add("doc1.md")
        result = bulk_add_numbering(store, sorted(store.docs), Settings(), pacing=NO_PACING)
        assert result.processed == 2
        assert result.modified == ["doc0.md", "doc2.md"]
        assert list(result.failed) == ["doc1.md"]


class TestBulkRemove:
    def test_strips_all_levels(self) -> None:
        """Numbers outside the configured level range are removed too."""
        store = MemoryStore({"a.md": "# 1\tA\n## 1.1\tB\n#### 1.1.1.1\tC\n"})
        result = bulk_remove_numbering(store, ["a.md"], Settings(end_level=2), pacing=NO_PACING)
        assert result.modified == ["a.md"]
        assert store.docs["a.md"] == "# A\n## B\n#### C\n"

    def test_nothing_to_remove(self) -> None:
        store = MemoryStore({"a.md": "# A\n"})
        result = bulk_remove_numbering(store, ["a.md"], Settings(), pacing=NO_PACING)
        assert result.modified_count == 0
        assert store.writes == []


class TestPacing:
    def test_group_pauses(self) -> None:
        store = MemoryStore({f"d{i}.md": "plain text\n" for i in range(7)})
        sleeps: list[float] = []
        pacing = Pacing()
        bulk_add_numbering(store, sorted(store.docs), Settings(), pacing=pacing, sleep=sleeps.append)
        assert sleeps.count(pacing.per_document) == 7
        assert sleeps.count(pacing.between_groups) == 2
        assert pacing.after_modified not in sleeps

    def test_pause_after_modified_document(self) -> None:
        store = MemoryStore({"a.md": "# A\n"})
        sleeps: list[float] = []
        bulk_add_numbering(store, ["a.md"], Settings(), sleep=sleeps.append)
        assert sleeps == [0.01, 0.005, 0.05]

    def test_progress(self) -> None:
        store = _vault(3)
        calls: list[tuple[int, int]] = []
        bulk_remove_numbering(
            store,
            sorted(store.docs),
            Settings(),
            pacing=NO_PACING,
            progress=lambda current, total: calls.append((current, total)),
        )
        assert calls == [(1, 3), (2, 3), (3, 3)]
