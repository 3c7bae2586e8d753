"""
Static settings for headmark, from TOML config files and command-line flags.

The nearest `.headmark.toml`, `headmark.toml` or `pyproject.toml` with a
`[tool.headmark]` table (searching from the collection root upward) supplies values
the user did not pass as flags. Anything set in neither place keeps its built-in default.

The merged values become a `Settings` object: the static settings that the config
resolver starts from before per-document directives or level detection apply.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar, cast

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]

from headmark.errors import SettingsError
from headmark.transforms.header_lines import (
    HEADER_SEPARATORS,
    NUMBER_SEPARATORS,
    SPACE_SEPARATOR,
    TAB_SEPARATOR,
)


class AutoNumberingMode(str, Enum):
    """How numbering is switched on for a document."""

    off = "off"
    on = "on"
    yaml = "yaml"  # controlled by each document's directive block


@dataclass
class Settings:
    """Static numbering settings, before any per-document override."""

    language: str = "en"
    mode: AutoNumberingMode = AutoNumberingMode.on
    auto_detect_levels: bool = False
    start_level: int = 1
    end_level: int = 6
    start_number: int = 1
    number_separator: str = "."
    header_separator: str = TAB_SEPARATOR
    update_backlinks: bool = True
    # Document discovery
    extend_include: list[str] = field(default_factory=list)
    exclude: list[str] | None = None
    extend_exclude: list[str] = field(default_factory=list)
    respect_gitignore: bool = True
    files_max_size: int = 1_048_576


@dataclass
class HeadmarkConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    allowing the merge logic to distinguish "not configured" from "explicitly set
    to default value".
    """

    # Numbering
    language: str | None = None
    mode: str | None = None
    auto_detect_levels: bool | None = None
    start_level: int | None = None
    end_level: int | None = None
    start_number: int | None = None
    number_separator: str | None = None
    header_separator: str | None = None
    # Backlinks
    update_backlinks: bool | None = None
    # Document discovery
    extend_include: list[str] | None = None
    exclude: list[str] | None = None
    extend_exclude: list[str] | None = None
    respect_gitignore: bool | None = None
    files_max_size: int | None = None


# Checked in this order in each directory, nearest directory first
_CONFIG_FILENAMES = [".headmark.toml", "headmark.toml", "pyproject.toml"]

_VALID_FIELDS = {f.name for f in fields(HeadmarkConfig)}

_HEADER_SEPARATOR_NAMES = {"tab": TAB_SEPARATOR, "space": SPACE_SEPARATOR}


def _read_toml(path: Path) -> dict[str, Any]:
    return tomllib.loads(path.read_text(encoding="utf-8"))


def _config_in(directory: Path) -> Path | None:
    for filename in _CONFIG_FILENAMES:
        candidate = directory / filename
        if not candidate.is_file():
            continue
        if filename != "pyproject.toml":
            return candidate
        try:
            if "headmark" in _read_toml(candidate).get("tool", {}):
                return candidate
        except (tomllib.TOMLDecodeError, OSError):
            pass
    return None


def find_config_file(start_dir: Path) -> Path | None:
    """
    The config file nearest to `start_dir`, searching it and then each parent.
    A `pyproject.toml` only counts if it has a `[tool.headmark]` table.
    """
    start = start_dir.resolve()
    for directory in (start, *start.parents):
        found = _config_in(directory)
        if found is not None:
            return found
    return None


def load_config(config_path: Path) -> HeadmarkConfig:
    """
    Read a `HeadmarkConfig` from `.headmark.toml`, `headmark.toml` or the
    `[tool.headmark]` table of `pyproject.toml`. A file that is not valid TOML gives an
    empty config and a warning.
    """
    try:
        data = _read_toml(config_path)
    except tomllib.TOMLDecodeError as e:
        print(f"Warning: ignoring malformed config {config_path}: {e}", file=sys.stderr)
        return HeadmarkConfig()

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("headmark", {})
    return _parse_config_data(data)


def _parse_config_data(data: dict[str, Any]) -> HeadmarkConfig:
    """
    Build a `HeadmarkConfig` from TOML data. Tables such as `[numbering]` or
    `[file-discovery]` are only grouping: their keys are read as if top-level.
    Keys are kebab-case; unknown keys are dropped with a warning.
    """
    values: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            entries = list(cast(dict[str, Any], value).items())
        else:
            entries = [(key, value)]
        for name, item in entries:
            field_name = name.replace("-", "_")
            if field_name not in _VALID_FIELDS:
                print(f"Warning: unrecognized config key: {name}", file=sys.stderr)
                continue
            values[field_name] = item
    return HeadmarkConfig(**values)


def parse_header_separator(value: str) -> str:
    """Accept `tab`/`space` names as well as the literal characters."""
    return _HEADER_SEPARATOR_NAMES.get(value.strip().lower(), value)


def parse_mode(value: str | AutoNumberingMode) -> AutoNumberingMode:
    if isinstance(value, AutoNumberingMode):
        return value
    try:
        return AutoNumberingMode(value.strip().lower())
    except ValueError:
        choices = ", ".join(m.value for m in AutoNumberingMode)
        raise SettingsError(f"Numbering mode must be one of {choices}: {value!r}") from None


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: HeadmarkConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Copy config file values onto `cli_opts`, except for settings named in
    `explicit_flags`. A flag the user typed always wins, even when its value is the default.
    """
    if config is None:
        return cli_opts

    for name in _VALID_FIELDS - explicit_flags:
        value = getattr(config, name)
        if value is not None and hasattr(cli_opts, name):
            setattr(cli_opts, name, value)
    return cli_opts


def settings_from_options(opts: object) -> Settings:
    """
    Build `Settings` from any object carrying settings-named attributes (CLI options or
    a `HeadmarkConfig`). Missing or `None` attributes keep the built-in defaults.
    """
    settings = Settings()
    for settings_field in fields(Settings):
        value = getattr(opts, settings_field.name, None)
        if value is None:
            continue
        if settings_field.name == "mode":
            value = parse_mode(value)
        elif settings_field.name == "header_separator":
            value = parse_header_separator(value)
        setattr(settings, settings_field.name, value)
    return settings


def validate_settings(settings: Settings) -> Settings:
    """
    Check the settings-entry rules. The numbering engine itself never rejects config;
    this is where out-of-range values are caught.
    """
    if not 1 <= settings.start_level <= 6:
        raise SettingsError(f"Start level must be between 1 and 6: {settings.start_level}")
    if not 1 <= settings.end_level <= 6:
        raise SettingsError(f"End level must be between 1 and 6: {settings.end_level}")
    if settings.start_level > settings.end_level:
        raise SettingsError(
            f"Start level must be less than or equal to end level: "
            f"{settings.start_level} > {settings.end_level}"
        )
    if settings.number_separator not in NUMBER_SEPARATORS:
        raise SettingsError(
            f"Number separator must be one of '{''.join(NUMBER_SEPARATORS)}': "
            f"{settings.number_separator!r}"
        )
    if settings.header_separator not in HEADER_SEPARATORS:
        raise SettingsError(
            f"Header separator must be a tab or a space: {settings.header_separator!r}"
        )
    return settings
