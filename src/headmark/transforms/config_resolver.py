"""
Resolve the effective numbering config for one document.

Three sources compete: static settings, the document's own directive block, and
automatic level-range detection. Precedence (first match wins):

1. Global numbering switched off -> disabled
2. Per-document override switched off -> disabled
3. Mode `yaml` -> directives from the front matter override the static settings
4. Mode `on` with level detection -> detected `[min, max]` level range
5. Otherwise -> static settings unchanged

The resolver never raises on bad directive values. A malformed value keeps whatever was
resolved before it and logs a warning; range checks belong to settings entry, not here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from headmark.config import AutoNumberingMode, Settings
from headmark.transforms.directives import parse_directive, read_directives
from headmark.transforms.header_lines import NUMBER_SEPARATORS
from headmark.transforms.level_analysis import HeaderAnalysisCache, analyze_header_levels

log = logging.getLogger(__name__)

DocumentStateLookup = Callable[[str], bool | None]
"""Returns the stored per-document enablement, or None when there is no override."""


@dataclass(frozen=True)
class NumberingConfig:
    """Effective numbering config for one numbering operation. Never mutated."""

    enabled: bool
    start_level: int
    end_level: int
    start_number: int
    number_separator: str
    header_separator: str


def static_config(settings: Settings) -> NumberingConfig:
    """The config implied by the static settings alone."""
    return NumberingConfig(
        enabled=settings.mode != AutoNumberingMode.off,
        start_level=settings.start_level,
        end_level=settings.end_level,
        start_number=settings.start_number,
        number_separator=settings.number_separator,
        header_separator=settings.header_separator,
    )


def _parse_int(value: str, key: str, fallback: int) -> int:
    try:
        return int(value)
    except ValueError:
        log.warning("Ignoring directive %r: %r is not a number", key, value)
        return fallback


def apply_directives(config: NumberingConfig, directives: list[str]) -> NumberingConfig:
    """
    Apply directive strings in order. Later directives see the effect of earlier ones,
    so `max` counts levels from whatever `first-level` was resolved before it.
    """
    for item in directives:
        key, value = parse_directive(item)
        if key == "state":
            config = replace(config, enabled=value == "on")
        elif key == "first-level":
            level = _parse_int(value[1:], key, config.start_level)
            config = replace(config, start_level=level)
        elif key == "max":
            count = _parse_int(value, key, config.end_level - config.start_level + 1)
            config = replace(config, end_level=config.start_level + count - 1)
        elif key == "start-at":
            config = replace(config, start_number=_parse_int(value, key, config.start_number))
        elif key == "separator":
            if value in NUMBER_SEPARATORS:
                config = replace(config, number_separator=value)
            else:
                log.warning("Ignoring directive 'separator': unsupported value %r", value)
        # Unknown keys are ignored
    return config


def resolve_numbering_config(
    settings: Settings,
    text: str,
    *,
    document: str | None = None,
    global_enabled: bool = True,
    document_state: DocumentStateLookup | None = None,
    analysis_cache: HeaderAnalysisCache | None = None,
) -> NumberingConfig:
    """
    Merge static settings, the document's directive block and detected levels into one
    `NumberingConfig`. Always returns a fully populated config.
    """
    config = static_config(settings)

    if not global_enabled:
        return replace(config, enabled=False)

    if document is not None and document_state is not None and document_state(document) is False:
        return replace(config, enabled=False)

    if settings.mode == AutoNumberingMode.yaml:
        directives = read_directives(text)
        if directives is None:
            return config
        return apply_directives(config, directives)

    if settings.mode == AutoNumberingMode.on and settings.auto_detect_levels:
        if analysis_cache is not None and document is not None:
            analysis = analysis_cache.get(document, text)
        else:
            analysis = analyze_header_levels(text)
        if analysis.is_empty:
            return config
        return replace(config, start_level=analysis.min_level, end_level=analysis.max_level)

    return config
