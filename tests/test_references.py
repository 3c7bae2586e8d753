"""Tests for link extraction and reference indexes."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

from headmark.backlinks.references import (
    Position,
    Reference,
    StaticReferenceIndex,
    VaultReferenceIndex,
    find_markdown_links,
    find_references,
    find_wikilinks,
    normalize_reference,
)
from headmark.vault import FileDocumentStore


class TestReference:
    def test_target_and_fragment(self) -> None:
        ref = Reference("B.md", "A#Old Title", "[[A#Old Title]]", Position(0, 0, 0, 15))
        assert ref.target == "A"
        assert ref.fragment == "Old Title"

    def test_no_fragment(self) -> None:
        ref = Reference("B.md", "A", "[[A]]", Position(0, 0, 0, 5))
        assert ref.fragment is None


class TestNormalizeReference:
    def test_mapping_with_col(self) -> None:
        raw = {
            "link": "A#Old Title",
            "original": "[[A#Old Title|alias]]",
            "position": {"start": {"line": 3, "col": 2}, "end": {"line": 3, "col": 23}},
        }
        assert normalize_reference("B.md", raw) == Reference(
            "B.md", "A#Old Title", "[[A#Old Title|alias]]", Position(3, 2, 3, 23)
        )

    def test_object_with_ch(self) -> None:
        raw = SimpleNamespace(
            link="A#H",
            original="[[A#H]]",
            position=SimpleNamespace(
                start=SimpleNamespace(line=1, ch=4), end=SimpleNamespace(line=1, ch=11)
            ),
        )
        ref = normalize_reference("B.md", raw)
        assert ref is not None
        assert ref.position == Position(1, 4, 1, 11)

    def test_missing_original_uses_link(self) -> None:
        raw = {"link": "A", "position": {"start": {"line": 0}, "end": {"line": 0}}}
        ref = normalize_reference("B.md", raw)
        assert ref is not None
        assert ref.original == "A"

    def test_records_without_position_are_dropped(self) -> None:
        assert normalize_reference("B.md", {"link": "A"}) is None
        assert normalize_reference("B.md", {"position": {}}) is None


def test_static_index():
    index = StaticReferenceIndex(
        {
            "A.md": {
                "B.md": [
                    {
                        "link": "A#Intro",
                        "original": "[[A#Intro]]",
                        "position": {"start": {"line": 0, "col": 0}, "end": {"line": 0, "col": 11}},
                    },
                    {"link": "A"},
                ]
            }
        }
    )
    backlinks = index.backlinks_for("A.md")
    assert list(backlinks) == ["B.md"]
    assert [r.link for r in backlinks["B.md"]] == ["A#Intro"]
    assert index.backlinks_for("missing.md") == {}


class TestFindLinks:
    def test_wikilinks(self) -> None:
        text = "See [[A#Old Title]] and ![[img.png]].\nAlso [[A#Other|alias]]"
        refs = find_wikilinks("B.md", text)
        assert [(r.link, r.original) for r in refs] == [
            ("A#Old Title", "[[A#Old Title]]"),
            ("img.png", "![[img.png]]"),
            ("A#Other", "[[A#Other|alias]]"),
        ]
        assert refs[0].position == Position(0, 4, 0, 19)
        assert refs[2].position.start_line == 1

    def test_wikilinks_in_fences_skipped(self) -> None:
        text = "```\n[[A#Code]]\n```\n[[A#Real]]"
        assert [r.link for r in find_wikilinks("B.md", text)] == ["A#Real"]

    def test_wikilinks_in_code_spans_skipped(self) -> None:
        assert find_references("B.md", "Write `[[A#Old]]` to link.") == []
        text = "Use ``[[A#Code]]`` or [[A#Real]]"
        refs = find_wikilinks("B.md", text)
        assert [(r.link, r.original) for r in refs] == [("A#Real", "[[A#Real]]")]
        assert refs[0].position == Position(0, 22, 0, 32)

    def test_markdown_links(self) -> None:
        text = "Read [the intro](A.md#Old%20Title) or [site](https://example.com/#x)."
        refs = find_markdown_links("B.md", text)
        assert len(refs) == 1
        assert refs[0].link == "A.md#Old Title"
        assert refs[0].original == "[the intro](A.md#Old%20Title)"

    def test_markdown_link_with_title(self) -> None:
        text = "[see](A.md#Old \"tip\") and [more](A.md#Other 'hint')"
        refs = find_references("B.md", text)
        assert [(r.link, r.original) for r in refs] == [
            ("A.md#Old", "[see](A.md#Old \"tip\")"),
            ("A.md#Other", "[more](A.md#Other 'hint')"),
        ]
        assert refs[0].fragment == "Old"

    def test_markdown_links_in_code_skipped(self) -> None:
        text = "Inline `[x](A.md#Code)` here.\n\n```\n[y](A.md#Fenced)\n```\n"
        assert find_markdown_links("B.md", text) == []

    def test_find_references_sorted(self) -> None:
        text = "[md](A.md#Two) then [[A#One]]\n[[A#Three]]"
        refs = find_references("B.md", text)
        assert [r.link for r in refs] == ["A.md#Two", "A#One", "A#Three"]


class TestVaultReferenceIndex:
    def _vault(self, root: Path) -> VaultReferenceIndex:
        (root / "A.md").write_text("# Old Title\n[[#Old Title]]\n")
        (root / "B.md").write_text("Link: [[A#Old Title]]\n")
        sub = root / "sub"
        sub.mkdir()
        (sub / "C.md").write_text("[see](../A.md#Old%20Title) and [[Nowhere#X]]\n")
        (sub / "A.md").write_text("# Shadow\n")
        (sub / "D.md").write_text("[[A#Shadow]]\n")
        docs = ["A.md", "B.md", "sub/A.md", "sub/C.md", "sub/D.md"]
        return VaultReferenceIndex(FileDocumentStore(root), docs)

    def test_resolve(self, tmp_path: Path) -> None:
        index = self._vault(tmp_path)
        assert index.resolve("A", "B.md") == "A.md"
        assert index.resolve("A", "sub/D.md") == "sub/A.md"
        assert index.resolve("../A.md", "sub/C.md") == "A.md"
        assert index.resolve("", "B.md") == "B.md"
        assert index.resolve("Nowhere", "B.md") is None

    def test_resolve_by_file_name(self, tmp_path: Path) -> None:
        index = self._vault(tmp_path)
        assert index.resolve("C", "B.md") == "sub/C.md"

    def test_backlinks_exclude_self_links(self, tmp_path: Path) -> None:
        index = self._vault(tmp_path)
        backlinks = index.backlinks_for("A.md")
        assert sorted(backlinks) == ["B.md", "sub/C.md"]
        assert backlinks["B.md"][0].original == "[[A#Old Title]]"
        assert backlinks["sub/C.md"][0].link == "../A.md#Old Title"
