"""
Per-document numbering directives stored in YAML front matter.

A document can override numbering settings with a list of directive strings under
the `header-auto-numbering` key:

    ---
    header-auto-numbering:
      - state on
      - first-level h2
      - max 3
      - start-at 1
      - separator .
    ---

Each directive is `"<key> <value...>"`. This module only reads and writes the block;
interpreting the directives is the config resolver's job.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import yaml

log = logging.getLogger(__name__)

DIRECTIVE_KEY = "header-auto-numbering"

DEFAULT_DIRECTIVES: list[str] = [
    "state on",
    "first-level h1",
    "max 6",
    "start-at 1",
    "separator .",
]

_FRONT_MATTER_PATTERN = re.compile(r"\A---\n(?:(.*?)\n)?---(?=\n|\Z)", re.DOTALL)


def _front_matter(text: str) -> tuple[re.Match[str] | None, dict[str, Any] | None]:
    """
    Locate and parse the front matter block.

    Returns `(match, data)`. `data` is None when there is no block, and an empty dict
    for a block that is empty. Raises `yaml.YAMLError` for a block that is not YAML.
    """
    match = _FRONT_MATTER_PATTERN.match(text)
    if not match:
        return None, None
    body = match.group(1) or ""
    data = yaml.safe_load(body) if body.strip() else {}
    if not isinstance(data, dict):
        return match, {}
    return match, data


def read_directives(text: str) -> list[str] | None:
    """
    Return the directive strings from the document's front matter, or None if the
    document has no directive block (or its front matter cannot be parsed).
    """
    try:
        _, data = _front_matter(text)
    except yaml.YAMLError as e:
        log.warning("Ignoring unparseable front matter: %s", e)
        return None

    if not data or DIRECTIVE_KEY not in data:
        return None

    value = data[DIRECTIVE_KEY]
    if value is None or value == "":
        return None
    if isinstance(value, list):
        return [str(item) for item in value]  # pyright: ignore[reportUnknownVariableType]
    return [str(value)]


def parse_directive(item: str) -> tuple[str, str]:
    """Split `"first-level h2"` into `("first-level", "h2")`. Extra spaces stay in the value."""
    key, _, value = item.strip().partition(" ")
    return key, value.strip()


def _render(data: dict[str, Any]) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)


def set_directives(text: str, directives: list[str] | None = None) -> str:
    """
    Write a directive block into the document's front matter, replacing any existing
    block. Other front matter keys are preserved. Creates front matter if there is none.

    Raises `ValueError` if the existing front matter is not valid YAML.
    """
    values = list(directives) if directives is not None else list(DEFAULT_DIRECTIVES)
    try:
        match, data = _front_matter(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Front matter is not valid YAML: {e}") from e

    if match is None or data is None:
        return f"---\n{_render({DIRECTIVE_KEY: values})}---\n{text}"

    data[DIRECTIVE_KEY] = values
    return f"---\n{_render(data)}---{text[match.end() :]}"


def remove_directives(text: str) -> str:
    """
    Remove the directive block. Drops the front matter entirely if nothing else is in it.
    Returns `text` unchanged when there is no directive block.
    """
    try:
        match, data = _front_matter(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Front matter is not valid YAML: {e}") from e

    if match is None or not data or DIRECTIVE_KEY not in data:
        return text

    del data[DIRECTIVE_KEY]
    rest = text[match.end() :]
    if not data:
        return rest[1:] if rest.startswith("\n") else rest
    return f"---\n{_render(data)}---{rest}"
