"""Exception types raised by headmark."""

from __future__ import annotations


class HeadmarkError(Exception):
    """Base class for headmark errors."""


class SettingsError(HeadmarkError, ValueError):
    """A setting is out of range or malformed."""


class BacklinkUpdateError(HeadmarkError):
    """
    A write in a multi-document batch failed and every written document was restored
    to its snapshot. The batch left no changes behind.
    """

    def __init__(self, document: str, cause: BaseException) -> None:
        super().__init__(f"Failed to write {document}: {cause}")
        self.document: str = document
        self.cause: BaseException = cause


class RollbackError(HeadmarkError):
    """
    Restoring snapshots after a failed batch also failed. Some documents may be left
    with partial changes.
    """

    def __init__(self, documents: list[str], cause: BaseException) -> None:
        super().__init__(f"Failed to restore {', '.join(documents)}: {cause}")
        self.documents: list[str] = documents
        self.cause: BaseException = cause
