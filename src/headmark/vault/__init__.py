"""
Document collections: discovery of markdown documents and a file-backed store.

Usage::

    from headmark.vault import DiscoveryConfig, DocumentFinder, FileDocumentStore

    finder = DocumentFinder(DiscoveryConfig(extend_exclude=["drafts/"]))
    documents = finder.document_ids(Path("notes"))
    store = FileDocumentStore(Path("notes"))
    text = store.read(documents[0])
"""

from headmark.vault.defaults import DEFAULT_EXCLUDES, DEFAULT_INCLUDES
from headmark.vault.discovery import DocumentFinder, document_id
from headmark.vault.store import DocumentStore, FileDocumentStore
from headmark.vault.types import DiscoveryConfig

__all__ = [
    "DEFAULT_EXCLUDES",
    "DEFAULT_INCLUDES",
    "DiscoveryConfig",
    "DocumentFinder",
    "DocumentStore",
    "FileDocumentStore",
    "document_id",
]
