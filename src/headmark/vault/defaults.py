"""Default include and exclude patterns (gitignore syntax) for document discovery."""

from __future__ import annotations

DEFAULT_INCLUDES: list[str] = ["*.md"]

# Directories that never hold notes worth numbering. Matching directories are pruned
# from the walk.
DEFAULT_EXCLUDES: list[str] = [
    ".git/",
    ".hg/",
    ".svn/",
    ".obsidian/",
    ".trash/",
    ".foam/",
    ".logseq/",
    ".venv/",
    "venv/",
    "__pycache__/",
    ".pytest_cache/",
    "node_modules/",
    "build/",
    "dist/",
    "site/",
]
