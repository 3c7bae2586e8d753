"""
DocumentFinder: lists the markdown documents in a collection.

A collection is a folder tree (a notes vault, a docs directory). Documents are
identified by their path relative to the collection root, in POSIX form
(`notes/Topic.md`), so identities are stable across platforms.

Skipped:
- directories matching the exclude patterns (never entered)
- files not matching the include patterns, or larger than `files_max_size`
- anything matched by a `.gitignore` in the directory or one of its ancestors up to the
  root, or by the collection's `.headmarkignore`
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pathspec

from headmark.vault.ignore_files import GITIGNORE, collection_ignore, read_ignore_file
from headmark.vault.types import DiscoveryConfig

IgnoreChain = tuple[pathspec.PathSpec, ...]


def document_id(root: Path, path: Path) -> str:
    """Identity of `path` within the collection at `root`."""
    return path.resolve().relative_to(root.resolve()).as_posix()


class DocumentFinder:
    def __init__(self, config: DiscoveryConfig | None = None) -> None:
        self.config: DiscoveryConfig = config or DiscoveryConfig()
        self._include = pathspec.PathSpec.from_lines("gitignore", self.config.effective_include)
        self._exclude = pathspec.PathSpec.from_lines("gitignore", self.config.effective_exclude)

    def find(self, root: Path) -> list[Path]:
        """All documents under `root`, sorted."""
        return sorted(self._documents(root))

    def document_ids(self, root: Path) -> list[str]:
        """All document identities under `root`, sorted."""
        return sorted(document_id(root, path) for path in self._documents(root))

    def _documents(self, root: Path) -> Iterator[Path]:
        tool_ignore = collection_ignore(self.config.tool_name, root)
        # Each directory's gitignore chain extends its parent's.
        chains: dict[Path, IgnoreChain] = {}

        for dirpath, dirnames, filenames in os.walk(root):
            directory = Path(dirpath)
            rel_dir = directory.relative_to(root)
            chain = chains.pop(directory, ()) + self._own_gitignore(directory)

            kept: list[str] = []
            for name in sorted(dirnames):
                rel = (rel_dir / name).as_posix() + "/"
                if self._skip_dir(name + "/", rel, chain, tool_ignore):
                    continue
                kept.append(name)
                chains[directory / name] = chain
            dirnames[:] = kept

            for name in filenames:
                path = directory / name
                rel = (rel_dir / name).as_posix()
                if self._skip_file(path, name, rel, chain, tool_ignore):
                    continue
                yield path

    def _own_gitignore(self, directory: Path) -> IgnoreChain:
        if not self.config.respect_gitignore:
            return ()
        spec = read_ignore_file(directory / GITIGNORE)
        return (spec,) if spec is not None else ()

    def _skip_dir(
        self,
        name: str,
        rel: str,
        chain: IgnoreChain,
        tool_ignore: pathspec.PathSpec | None,
    ) -> bool:
        return (
            self._exclude.match_file(name)
            or self._exclude.match_file(rel)
            or any(spec.match_file(name) for spec in chain)
            or (tool_ignore is not None and tool_ignore.match_file(rel))
        )

    def _skip_file(
        self,
        path: Path,
        name: str,
        rel: str,
        chain: IgnoreChain,
        tool_ignore: pathspec.PathSpec | None,
    ) -> bool:
        if not self._include.match_file(name):
            return True
        if self._too_large(path):
            return True
        if any(spec.match_file(name) for spec in chain):
            return True
        return tool_ignore is not None and tool_ignore.match_file(rel)

    def _too_large(self, path: Path) -> bool:
        limit = self.config.files_max_size
        if not limit:
            return False
        try:
            return path.stat().st_size > limit
        except OSError:
            return False
