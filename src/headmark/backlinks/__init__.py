"""
Backlink maintenance: find links to renamed headings and rewrite them atomically.

Usage::

    from headmark.backlinks import BacklinkSynchronizer, VaultReferenceIndex

    index = VaultReferenceIndex(store, documents)
    sync = BacklinkSynchronizer(index, store)
    updates = sync.find_heading_backlinks("A.md", "Old Title", "1.1\tOld Title")
    sync.update_backlinks(updates)
"""

from headmark.backlinks.references import (
    Position,
    Reference,
    ReferenceIndex,
    StaticReferenceIndex,
    VaultReferenceIndex,
    find_references,
)
from headmark.backlinks.synchronizer import BacklinkSynchronizer, HeaderLinkUpdate
from headmark.backlinks.transaction import DocumentTransaction

__all__ = [
    "BacklinkSynchronizer",
    "DocumentTransaction",
    "HeaderLinkUpdate",
    "Position",
    "Reference",
    "ReferenceIndex",
    "StaticReferenceIndex",
    "VaultReferenceIndex",
    "find_references",
]
