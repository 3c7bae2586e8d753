"""
High-level numbering operations on the documents of a collection.

A `Workspace` bundles everything one collection needs: its static settings, persisted
toggle state, document store, translator and notifier. The functions here are what the
CLI calls; a host integration can call them the same way.

Numbering a document and rewriting the links to its renamed headings is one unit of
work: the document and every linking document are committed in a single
`DocumentTransaction`, so either all of them change or none do.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from headmark.backlinks.references import VaultReferenceIndex
from headmark.backlinks.synchronizer import BacklinkSynchronizer
from headmark.backlinks.transaction import DocumentTransaction
from headmark.config import Settings
from headmark.i18n import Translator
from headmark.state import NumberingState, load_state, save_state
from headmark.transforms import directives
from headmark.transforms.config_resolver import NumberingConfig, resolve_numbering_config
from headmark.transforms.level_analysis import HeaderAnalysisCache, HeaderLevelAnalysis
from headmark.transforms.numbering_pass import (
    LineEdit,
    apply_line_edits,
    number_headers,
    remove_header_numbers,
)
from headmark.vault import DiscoveryConfig, DocumentFinder, FileDocumentStore, document_id

log = logging.getLogger(__name__)

Notifier = Callable[[str], None]


def stderr_notifier(message: str) -> None:
    print(message, file=sys.stderr)


@dataclass
class Workspace:
    root: Path
    settings: Settings
    state: NumberingState
    store: FileDocumentStore
    translator: Translator
    notify: Notifier = stderr_notifier
    analysis_cache: HeaderAnalysisCache = field(default_factory=HeaderAnalysisCache)

    @classmethod
    def open(
        cls,
        root: Path,
        settings: Settings | None = None,
        *,
        notify: Notifier = stderr_notifier,
    ) -> Workspace:
        settings = settings or Settings()
        return cls(
            root=root.resolve(),
            settings=settings,
            state=load_state(root),
            store=FileDocumentStore(root),
            translator=Translator(settings.language),
            notify=notify,
        )

    @property
    def discovery_config(self) -> DiscoveryConfig:
        return DiscoveryConfig(
            extend_include=self.settings.extend_include,
            exclude=self.settings.exclude,
            extend_exclude=self.settings.extend_exclude,
            respect_gitignore=self.settings.respect_gitignore,
            files_max_size=self.settings.files_max_size,
        )

    def documents(self) -> list[str]:
        return DocumentFinder(self.discovery_config).document_ids(self.root)

    def document_for(self, path: Path) -> str:
        """Identity of a file path (absolute or relative to the working directory)."""
        try:
            return document_id(self.root, path)
        except ValueError:
            raise ValueError(f"Document is outside the collection {self.root}: {path}") from None

    def config_for(self, document: str, text: str) -> NumberingConfig:
        return resolve_numbering_config(
            self.settings,
            text,
            document=document,
            global_enabled=self.state.enabled,
            document_state=self.state.document_state,
            analysis_cache=self.analysis_cache,
        )

    def save_state(self) -> None:
        save_state(self.root, self.state)


@dataclass
class NumberingResult:
    document: str
    edits: list[LineEdit]
    backlink_updates: int = 0
    committed: bool = True

    @property
    def changed(self) -> bool:
        return bool(self.edits)


def _commit_with_backlinks(
    workspace: Workspace, document: str, new_text: str, edits: list[LineEdit]
) -> NumberingResult:
    txn = DocumentTransaction(workspace.store)
    txn.stage(document, new_text)

    renames = [(e.old_heading, e.new_heading) for e in edits if e.renames_heading]
    if not workspace.settings.update_backlinks or not renames:
        txn.commit()
        return NumberingResult(document, edits)

    index = VaultReferenceIndex(workspace.store, workspace.documents())
    synchronizer = BacklinkSynchronizer(
        index, workspace.store, translator=workspace.translator, notify=workspace.notify
    )
    updates = synchronizer.plan_heading_renames(document, renames)
    committed = synchronizer.update_backlinks(updates, transaction=txn)
    return NumberingResult(
        document,
        edits,
        backlink_updates=len(updates) if committed else 0,
        committed=committed,
    )


def number_document(workspace: Workspace, document: str, *, dry_run: bool = False) -> NumberingResult:
    """Insert or refresh header numbers in `document`, rewriting links to renamed headings."""
    text = workspace.store.read(document)
    config = workspace.config_for(document, text)
    t = workspace.translator.t

    if not config.enabled:
        workspace.notify(t("notices.disabled", document=document))
        return NumberingResult(document, [], committed=False)

    edits = number_headers(text, config)
    if not edits:
        workspace.notify(t("notices.unchanged", document=document))
        return NumberingResult(document, [])
    if dry_run:
        return NumberingResult(document, edits, committed=False)

    result = _commit_with_backlinks(workspace, document, apply_line_edits(text, edits), edits)
    if result.committed:
        workspace.notify(t("notices.numbered", count=len(edits), document=document))
    return result


def unnumber_document(
    workspace: Workspace, document: str, *, dry_run: bool = False
) -> NumberingResult:
    """Strip header numbers from `document`, rewriting links to renamed headings."""
    text = workspace.store.read(document)
    config = workspace.config_for(document, text)
    t = workspace.translator.t

    edits = remove_header_numbers(text, config)
    if not edits:
        workspace.notify(t("notices.unchanged", document=document))
        return NumberingResult(document, [])
    if dry_run:
        return NumberingResult(document, edits, committed=False)

    result = _commit_with_backlinks(workspace, document, apply_line_edits(text, edits), edits)
    if result.committed:
        workspace.notify(t("notices.unnumbered", count=len(edits), document=document))
    return result


def analyze_document(workspace: Workspace, document: str) -> HeaderLevelAnalysis:
    return workspace.analysis_cache.get(document, workspace.store.read(document))


# === Toggles and directive blocks ===


def toggle_global(workspace: Workspace) -> bool:
    enabled = workspace.state.toggle_global()
    workspace.save_state()
    workspace.notify(workspace.translator.t("commands.globalOn" if enabled else "commands.globalOff"))
    return enabled


def toggle_document(workspace: Workspace, document: str) -> bool:
    enabled = workspace.state.toggle_document(document)
    workspace.save_state()
    key = "commands.documentOn" if enabled else "commands.documentOff"
    workspace.notify(workspace.translator.t(key, document=document))
    return enabled


def add_directives(workspace: Workspace, document: str) -> bool:
    """Add the default directive block unless the document already has one."""
    text = workspace.store.read(document)
    if directives.read_directives(text) is not None:
        return False
    workspace.store.write(document, directives.set_directives(text))
    workspace.notify(workspace.translator.t("commands.directivesAdded", document=document))
    return True


def reset_directives(workspace: Workspace, document: str) -> None:
    text = workspace.store.read(document)
    workspace.store.write(document, directives.set_directives(text))
    workspace.notify(workspace.translator.t("commands.directivesReset", document=document))


def remove_directives(workspace: Workspace, document: str) -> bool:
    text = workspace.store.read(document)
    new_text = directives.remove_directives(text)
    t = workspace.translator.t
    if new_text == text:
        workspace.notify(t("commands.directivesMissing", document=document))
        return False
    workspace.store.write(document, new_text)
    workspace.notify(t("commands.directivesRemoved", document=document))
    return True
