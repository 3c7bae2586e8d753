"""
Persisted numbering toggles for a collection.

Stored as `.headmark-state.json` in the collection root:

    {"enabled": true, "documents": {"notes/Draft.md": false}}

A missing file means numbering is on everywhere. `documents` only holds documents that
were toggled explicitly; anything else falls back to the global switch.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from strif import atomic_output_file

log = logging.getLogger(__name__)

STATE_FILENAME = ".headmark-state.json"


@dataclass
class NumberingState:
    enabled: bool = True
    documents: dict[str, bool] = field(default_factory=dict)

    def document_state(self, document: str) -> bool | None:
        """Stored enablement for `document`, or None if it has no override."""
        return self.documents.get(document)

    def is_enabled(self, document: str) -> bool:
        if not self.enabled:
            return False
        return self.documents.get(document, True)

    def toggle_global(self) -> bool:
        self.enabled = not self.enabled
        return self.enabled

    def toggle_document(self, document: str) -> bool:
        """Flip the override for `document`. Documents without one start out enabled."""
        new_state = not self.documents.get(document, True)
        self.documents[document] = new_state
        return new_state


def state_path(root: Path) -> Path:
    return root / STATE_FILENAME


def load_state(root: Path) -> NumberingState:
    path = state_path(root)
    if not path.is_file():
        return NumberingState()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        log.warning("Ignoring malformed state file %s: %s", path, e)
        return NumberingState()

    if not isinstance(data, dict):
        log.warning("Ignoring state file %s: expected an object", path)
        return NumberingState()

    documents = data.get("documents") or {}
    return NumberingState(
        enabled=bool(data.get("enabled", True)),
        documents={str(k): bool(v) for k, v in documents.items()},
    )


def save_state(root: Path, state: NumberingState) -> None:
    data = {"enabled": state.enabled, "documents": dict(sorted(state.documents.items()))}
    with atomic_output_file(state_path(root), make_parents=True) as tmp_path:
        Path(tmp_path).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
