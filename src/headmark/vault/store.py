"""
Document store: read and overwrite whole documents by identity.

Writes go through `strif.atomic_output_file`, so a failed write leaves the previous
content in place. The backlink transaction relies on that when it rolls back.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from strif import atomic_output_file


class DocumentStore(Protocol):
    """What the numbering and backlink code needs from a document store."""

    def read(self, document: str) -> str: ...

    def write(self, document: str, content: str) -> None:
        """Replace the whole content of `document`. Must be atomic."""
        ...


class FileDocumentStore:
    """Documents are files under `root`; identities are root-relative POSIX paths."""

    def __init__(self, root: Path) -> None:
        self.root: Path = root.resolve()

    def path_for(self, document: str) -> Path:
        path = (self.root / document).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Document is outside the collection: {document}")
        return path

    def exists(self, document: str) -> bool:
        return self.path_for(document).is_file()

    def read(self, document: str) -> str:
        return self.path_for(document).read_text(encoding="utf-8")

    def write(self, document: str, content: str) -> None:
        with atomic_output_file(self.path_for(document), make_parents=True) as tmp_path:
            Path(tmp_path).write_text(content, encoding="utf-8")
