"""
All-or-nothing writes across several documents.

A `DocumentTransaction` snapshots each document the first time it is read or staged,
collects new content in memory, and writes everything on `commit()`. If any write
fails, every document already written is restored from its snapshot and
`BacklinkUpdateError` is raised. If restoring fails too, `RollbackError` is raised
instead: that is the one case where partial changes may remain.

Store writes are atomic, so the document whose write failed still holds its old
content and is not rewritten during rollback.

Usage:
    txn = DocumentTransaction(store)
    text = txn.read("notes/B.md")
    txn.stage("notes/B.md", text.replace("[[A#Old]]", "[[A#1 Old]]"))
    txn.commit()
"""

from __future__ import annotations

import logging
from enum import Enum
from types import TracebackType
from typing import NoReturn

from headmark.errors import BacklinkUpdateError, HeadmarkError, RollbackError
from headmark.vault.store import DocumentStore

log = logging.getLogger(__name__)


class TransactionState(str, Enum):
    open = "open"
    committed = "committed"
    rolled_back = "rolled_back"


class DocumentTransaction:
    def __init__(self, store: DocumentStore) -> None:
        self._store: DocumentStore = store
        self._snapshots: dict[str, str] = {}
        self._staged: dict[str, str] = {}
        self.state: TransactionState = TransactionState.open

    def _check_open(self) -> None:
        if self.state != TransactionState.open:
            raise HeadmarkError(f"Transaction is already {self.state.value}")

    def snapshot(self, document: str) -> str:
        """Content of `document` as it was when the transaction first saw it."""
        if document not in self._snapshots:
            self._snapshots[document] = self._store.read(document)
        return self._snapshots[document]

    def read(self, document: str) -> str:
        """Current content within the transaction: staged content if any, else the snapshot."""
        if document in self._staged:
            return self._staged[document]
        return self.snapshot(document)

    def stage(self, document: str, content: str) -> None:
        """Record new content for `document`. Nothing is written until `commit()`."""
        self._check_open()
        self.snapshot(document)
        self._staged[document] = content

    @property
    def pending(self) -> list[str]:
        """Staged documents whose content differs from their snapshot, in staging order."""
        return [doc for doc, content in self._staged.items() if content != self._snapshots[doc]]

    def commit(self) -> list[str]:
        """Write every pending document. Returns the documents written."""
        self._check_open()
        written: list[str] = []
        for document in self.pending:
            try:
                self._store.write(document, self._staged[document])
            except Exception as e:
                log.error("Write failed for %s, rolling back %d document(s)", document, len(written))
                self._restore(written, document, e)
            written.append(document)

        self.state = TransactionState.committed
        log.debug("Committed %d document(s)", len(written))
        return written

    def _restore(self, written: list[str], failed_document: str, cause: Exception) -> NoReturn:
        self.state = TransactionState.rolled_back
        not_restored: list[str] = []
        last_error: Exception | None = None
        for document in reversed(written):
            try:
                self._store.write(document, self._snapshots[document])
            except Exception as e:
                log.critical("Could not restore %s: %s", document, e)
                not_restored.append(document)
                last_error = e

        if last_error is not None:
            raise RollbackError(not_restored, last_error) from cause
        raise BacklinkUpdateError(failed_document, cause) from cause

    def rollback(self) -> None:
        """Discard staged content. Only valid before commit; nothing has been written yet."""
        self._check_open()
        self._staged.clear()
        self.state = TransactionState.rolled_back

    def __enter__(self) -> DocumentTransaction:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.state != TransactionState.open:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
