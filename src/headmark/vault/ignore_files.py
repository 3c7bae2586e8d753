"""Ignore files (`.gitignore`, `.headmarkignore`) compiled into pathspec matchers."""

from __future__ import annotations

from pathlib import Path

import pathspec

GITIGNORE = ".gitignore"


def compile_patterns(lines: list[str]) -> pathspec.PathSpec | None:
    """Gitignore-style matcher for `lines`, ignoring blanks and `#` comments."""
    patterns = [s for s in (line.strip() for line in lines) if s and not s.startswith("#")]
    return pathspec.PathSpec.from_lines("gitignore", patterns) if patterns else None


def read_ignore_file(path: Path) -> pathspec.PathSpec | None:
    """Matcher for an ignore file. `None` when it is missing, empty or not UTF-8."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    return compile_patterns(text.splitlines())


def collection_ignore(tool_name: str, root: Path) -> pathspec.PathSpec | None:
    """
    The nearest `.<tool_name>ignore` at or above `root`. Its patterns are matched against
    paths relative to `root`.
    """
    name = f".{tool_name}ignore"
    start = root.resolve()
    for directory in (start, *start.parents):
        if (directory / name).is_file():
            return read_ignore_file(directory / name)
    return None
