"""Discovery settings for a document collection."""

from __future__ import annotations

from dataclasses import dataclass, field

from headmark.vault.defaults import DEFAULT_EXCLUDES, DEFAULT_INCLUDES


@dataclass
class DiscoveryConfig:
    """
    Which files under a collection root count as documents.

    Patterns use gitignore syntax. Leaving `exclude` as None keeps `DEFAULT_EXCLUDES`;
    a list replaces the defaults. A `files_max_size` of 0 means no size limit.
    """

    tool_name: str = "headmark"
    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDES))
    extend_include: list[str] = field(default_factory=list)
    exclude: list[str] | None = None
    extend_exclude: list[str] = field(default_factory=list)
    respect_gitignore: bool = True
    files_max_size: int = 1_048_576

    @property
    def effective_include(self) -> list[str]:
        return [*self.include, *self.extend_include]

    @property
    def effective_exclude(self) -> list[str]:
        excluded = list(DEFAULT_EXCLUDES) if self.exclude is None else list(self.exclude)
        return excluded + self.extend_exclude
