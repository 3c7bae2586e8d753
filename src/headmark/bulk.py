"""
Add or remove header numbering across every document in a collection.

Documents are processed one at a time in small groups, with short pauses between
documents and longer ones between groups, so other tools watching the same files
(indexers, sync clients) are not flooded with writes. A failure in one document is
logged and counted; the pass continues with the next one.

Bulk passes do not rewrite backlinks: every document in the collection is touched, so
links are best refreshed by numbering documents individually afterwards.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace

from headmark.config import Settings
from headmark.state import NumberingState
from headmark.transforms.config_resolver import (
    NumberingConfig,
    resolve_numbering_config,
    static_config,
)
from headmark.transforms.level_analysis import HeaderAnalysisCache
from headmark.transforms.numbering_pass import number_document, unnumber_document
from headmark.vault.store import DocumentStore

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class Pacing:
    """Delays (in seconds) and group size for bulk passes."""

    group_size: int = 5
    per_document: float = 0.005
    after_modified: float = 0.01
    between_groups: float = 0.05


NO_PACING = Pacing(per_document=0.0, after_modified=0.0, between_groups=0.0)


@dataclass
class BulkResult:
    processed: int = 0
    modified: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def modified_count(self) -> int:
        return len(self.modified)


def _run_paced(
    store: DocumentStore,
    documents: Sequence[str],
    transform: Callable[[str, str], str],
    *,
    pacing: Pacing,
    sleep: Callable[[float], None],
    progress: ProgressCallback | None,
) -> BulkResult:
    result = BulkResult()
    total = len(documents)

    for group_start in range(0, total, pacing.group_size):
        for document in documents[group_start : group_start + pacing.group_size]:
            try:
                text = store.read(document)
                new_text = transform(document, text)
                if new_text != text:
                    store.write(document, new_text)
                    result.modified.append(document)
                    sleep(pacing.after_modified)
                result.processed += 1
                if progress is not None:
                    progress(result.processed, total)
            except Exception as e:
                log.error("Error processing %s: %s", document, e)
                result.failed[document] = str(e)
            sleep(pacing.per_document)
        sleep(pacing.between_groups)

    log.info(
        "Bulk pass over %d document(s): %d modified, %d failed",
        total,
        result.modified_count,
        len(result.failed),
    )
    return result


def bulk_remove_numbering(
    store: DocumentStore,
    documents: Sequence[str],
    settings: Settings,
    *,
    pacing: Pacing = Pacing(),
    sleep: Callable[[float], None] = time.sleep,
    progress: ProgressCallback | None = None,
) -> BulkResult:
    """
    Strip numbers from the headers of every document, at every header level, so numbering
    left over from earlier settings is removed too.
    """
    config: NumberingConfig = replace(static_config(settings), start_level=1, end_level=6)

    def transform(_document: str, text: str) -> str:
        return unnumber_document(text, config)[0]

    return _run_paced(
        store, documents, transform, pacing=pacing, sleep=sleep, progress=progress
    )


def bulk_add_numbering(
    store: DocumentStore,
    documents: Sequence[str],
    settings: Settings,
    *,
    state: NumberingState | None = None,
    analysis_cache: HeaderAnalysisCache | None = None,
    pacing: Pacing = Pacing(),
    sleep: Callable[[float], None] = time.sleep,
    progress: ProgressCallback | None = None,
) -> BulkResult:
    """Number every document, each with its own resolved config."""
    numbering_state = state or NumberingState()

    def transform(document: str, text: str) -> str:
        config = resolve_numbering_config(
            settings,
            text,
            document=document,
            global_enabled=numbering_state.enabled,
            document_state=numbering_state.document_state,
            analysis_cache=analysis_cache,
        )
        return number_document(text, config)[0]

    return _run_paced(
        store, documents, transform, pacing=pacing, sleep=sleep, progress=progress
    )
