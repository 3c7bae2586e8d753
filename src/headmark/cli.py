#!/usr/bin/env python3
"""
headmark: Outline numbering for Markdown headers, with backlink sync

Common usage:
  headmark number notes/Topic.md
  headmark number --check notes/Topic.md
  headmark unnumber notes/Topic.md
  headmark analyze notes/Topic.md
  headmark bulk-remove .

Per-document control:
  headmark add-directives notes/Topic.md
  headmark toggle-document notes/Draft.md
  headmark toggle-global

Settings come from `.headmark.toml`, `headmark.toml` or `[tool.headmark]` in
`pyproject.toml`, searched upward from the collection root. Flags override them.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from headmark.bulk import BulkResult, bulk_add_numbering, bulk_remove_numbering
from headmark.config import (
    find_config_file,
    load_config,
    merge_cli_with_config,
    settings_from_options,
    validate_settings,
)
from headmark.errors import HeadmarkError, RollbackError
from headmark.numbering_api import (
    NumberingResult,
    Workspace,
    add_directives,
    analyze_document,
    number_document,
    remove_directives,
    reset_directives,
    toggle_document,
    toggle_global,
    unnumber_document,
)

log = logging.getLogger(__name__)

_COMMANDS_WITH_PATH = {
    "number",
    "unnumber",
    "toggle-document",
    "add-directives",
    "reset-directives",
    "remove-directives",
    "analyze",
}

_BULK_COMMANDS = {"bulk-add", "bulk-remove", "list-documents"}


@dataclass
class Options:
    """Command-line options for the headmark tool."""

    command: str | None
    path: str | None
    root: str
    check: bool
    version: bool
    verbose: bool
    # Numbering settings
    language: str
    mode: str
    auto_detect_levels: bool
    start_level: int
    end_level: int
    start_number: int
    number_separator: str
    header_separator: str
    update_backlinks: bool
    # Document discovery options
    extend_include: list[str]
    exclude: list[str] | None
    extend_exclude: list[str]
    respect_gitignore: bool
    files_max_size: int


def _settings_parser() -> argparse.ArgumentParser:
    """Options shared by every subcommand."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "--root",
        type=str,
        default=None,
        metavar="DIR",
        help="Collection root for backlinks, state and discovery (default: current directory)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug information to stderr"
    )
    parser.add_argument(
        "--lang",
        dest="language",
        type=str,
        choices=["en", "zh"],
        default="en",
        help="Language for messages (default: %(default)s)",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=["off", "on", "yaml"],
        default="on",
        help="'on' numbers every document, 'yaml' follows each document's directive block, "
        "'off' disables numbering (default: %(default)s)",
    )
    parser.add_argument(
        "--auto-detect-levels",
        action="store_true",
        dest="auto_detect_levels",
        help="Number only the range of header levels each document actually uses",
    )
    parser.add_argument(
        "--start-level",
        type=int,
        default=1,
        metavar="N",
        help="Header level that gets top-level numbers (default: %(default)s)",
    )
    parser.add_argument(
        "--end-level",
        type=int,
        default=6,
        metavar="N",
        help="Deepest header level to number (default: %(default)s)",
    )
    parser.add_argument(
        "--start-number",
        type=int,
        default=1,
        metavar="N",
        help="First top-level number (default: %(default)s)",
    )
    parser.add_argument(
        "--number-separator",
        type=str,
        choices=[".", ",", "/", "-"],
        default=".",
        help="Separator between number parts (default: %(default)s)",
    )
    parser.add_argument(
        "--header-separator",
        type=str,
        choices=["tab", "space"],
        default="tab",
        help="Separator between the number and the title (default: %(default)s)",
    )
    parser.add_argument(
        "--no-backlinks",
        action="store_true",
        dest="no_backlinks",
        help="Do not rewrite links to renamed headings",
    )
    # File discovery options
    parser.add_argument(
        "--extend-include",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Additional file patterns to include (e.g., '*.mdx'). Can be repeated",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Replace all default exclusion patterns. Can be repeated",
    )
    parser.add_argument(
        "--extend-exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Add to default exclusion patterns (e.g., 'drafts/'). Can be repeated",
    )
    parser.add_argument(
        "--no-respect-gitignore",
        action="store_true",
        dest="no_respect_gitignore",
        help="Disable .gitignore integration",
    )
    parser.add_argument(
        "--files-max-size",
        type=int,
        default=1_048_576,
        dest="files_max_size",
        metavar="BYTES",
        help="Skip files larger than this size in bytes (0 = no limit, default: %(default)s)",
    )
    return parser


def _explicit_flags(args: list[str]) -> set[str]:
    """
    Which settings flags the user actually passed, for config merge precedence.

    Flags are re-parsed with suppressed defaults, so only flags present on the command
    line show up as attributes.
    """
    # argparse dest name -> Options field name
    tracked: dict[str, str] = {
        "language": "language",
        "mode": "mode",
        "auto_detect_levels": "auto_detect_levels",
        "start_level": "start_level",
        "end_level": "end_level",
        "start_number": "start_number",
        "number_separator": "number_separator",
        "header_separator": "header_separator",
        "no_backlinks": "update_backlinks",
        "extend_include": "extend_include",
        "exclude": "exclude",
        "extend_exclude": "extend_exclude",
        "no_respect_gitignore": "respect_gitignore",
        "files_max_size": "files_max_size",
    }
    sentinel_parser = _settings_parser()
    sentinel_parser.set_defaults(**{dest: argparse.SUPPRESS for dest in tracked})
    sentinel_opts, _ = sentinel_parser.parse_known_args(args)

    return {field_name for dest, field_name in tracked.items() if hasattr(sentinel_opts, dest)}


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns a tuple of (options, explicit_flags) where `explicit_flags` tracks which
    settings flags the user explicitly passed.
    """
    # Use the module's docstring as the description
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    common = _settings_parser()
    parser = argparse.ArgumentParser(
        prog="headmark",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    for name, help_text in [
        ("number", "Add or refresh header numbers in a document"),
        ("unnumber", "Remove header numbers from a document"),
    ]:
        sub = subparsers.add_parser(name, parents=[common], help=help_text)
        sub.add_argument("path", type=str, help="Markdown document")
        sub.add_argument(
            "--check",
            action="store_true",
            help="Report what would change without writing; exit 1 if anything would",
        )

    for name, help_text in [
        ("toggle-document", "Switch numbering on or off for one document"),
        ("add-directives", "Add a numbering directive block to a document's front matter"),
        ("reset-directives", "Reset a document's numbering directives to the defaults"),
        ("remove-directives", "Remove the numbering directive block from a document"),
        ("analyze", "Show which header levels a document uses"),
    ]:
        sub = subparsers.add_parser(name, parents=[common], help=help_text)
        sub.add_argument("path", type=str, help="Markdown document")

    subparsers.add_parser(
        "toggle-global", parents=[common], help="Switch numbering on or off for the collection"
    )

    for name, help_text in [
        ("bulk-add", "Number every document in the collection"),
        ("bulk-remove", "Remove numbering from every document in the collection"),
        ("list-documents", "Print the documents in the collection"),
    ]:
        sub = subparsers.add_parser(name, parents=[common], help=help_text)
        sub.add_argument(
            "path", nargs="?", default=None, type=str, help="Collection root (default: --root)"
        )

    argv = args if args is not None else sys.argv[1:]
    opts = parser.parse_args(argv)

    # Without a subcommand (e.g. bare `--version`) the shared options are unset,
    # so start from their defaults.
    values: dict[str, Any] = {
        **vars(common.parse_args([])),
        "path": None,
        "check": False,
        **vars(opts),
    }

    options = Options(
        command=values["command"],
        path=values["path"],
        root=values["root"] or ".",
        check=values["check"],
        version=values["version"],
        verbose=values["verbose"],
        language=values["language"],
        mode=values["mode"],
        auto_detect_levels=values["auto_detect_levels"],
        start_level=values["start_level"],
        end_level=values["end_level"],
        start_number=values["start_number"],
        number_separator=values["number_separator"],
        header_separator=values["header_separator"],
        update_backlinks=not values["no_backlinks"],
        extend_include=values["extend_include"],
        exclude=values["exclude"],
        extend_exclude=values["extend_exclude"],
        respect_gitignore=not values["no_respect_gitignore"],
        files_max_size=values["files_max_size"],
    )
    return options, _explicit_flags(argv)


def _print_check(result: NumberingResult) -> None:
    for edit in result.edits:
        print(f"{result.document}:{edit.line_index + 1}: {edit.old_line!r} -> {edit.new_line!r}")


def _print_bulk(workspace: Workspace, result: BulkResult) -> None:
    t = workspace.translator.t
    for document in result.modified:
        print(document)
    if result.modified:
        workspace.notify(t("notices.bulkCompleted", count=result.modified_count))
    else:
        workspace.notify(t("notices.bulkNothingFound"))
    for document, error in result.failed.items():
        print(f"Error: {document}: {error}", file=sys.stderr)


def _run(options: Options, workspace: Workspace) -> int:
    command = options.command

    if command in _COMMANDS_WITH_PATH:
        assert options.path is not None
        document = workspace.document_for(Path(options.path))

        if command in ("number", "unnumber"):
            operation = number_document if command == "number" else unnumber_document
            result = operation(workspace, document, dry_run=options.check)
            if options.check:
                _print_check(result)
                return 1 if result.changed else 0
            return 0 if result.committed or not result.changed else 1

        if command == "toggle-document":
            toggle_document(workspace, document)
        elif command == "add-directives":
            add_directives(workspace, document)
        elif command == "reset-directives":
            reset_directives(workspace, document)
        elif command == "remove-directives":
            remove_directives(workspace, document)
        elif command == "analyze":
            analysis = analyze_document(workspace, document)
            t = workspace.translator.t
            if analysis.is_empty:
                print(t("analysis.empty", document=document))
            else:
                print(
                    t(
                        "analysis.summary",
                        document=document,
                        count=analysis.header_count,
                        min=analysis.min_level,
                        max=analysis.max_level,
                        levels=", ".join(f"H{level}" for level in sorted(analysis.used_levels)),
                    )
                )
        return 0

    if command == "toggle-global":
        toggle_global(workspace)
        return 0

    documents = workspace.documents()
    if command == "list-documents":
        for document in documents:
            print(document)
        return 0

    t = workspace.translator.t

    def progress(current: int, total: int) -> None:
        log.debug(t("notices.bulkProgress", current=current, total=total))

    if command == "bulk-add":
        result = bulk_add_numbering(
            workspace.store,
            documents,
            workspace.settings,
            state=workspace.state,
            analysis_cache=workspace.analysis_cache,
            progress=progress,
        )
    else:
        result = bulk_remove_numbering(
            workspace.store, documents, workspace.settings, progress=progress
        )
    _print_bulk(workspace, result)
    return 1 if result.failed else 0


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the headmark CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    options, explicit_flags = _parse_args(args)

    # Display version information if requested
    if options.version:
        try:
            version = importlib.metadata.version("headmark")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    if options.command is None:
        print(
            "Error: No command specified. Use --help for the list of commands.",
            file=sys.stderr,
        )
        return 1

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if options.command in _BULK_COMMANDS and options.path:
        options.root = options.path
    root = Path(options.root)
    if not root.is_dir():
        print(f"Error: Collection root is not a directory: {root}", file=sys.stderr)
        return 1

    try:
        # Load and merge config file settings
        config_path = find_config_file(root)
        if config_path:
            merge_cli_with_config(options, load_config(config_path), explicit_flags)
        settings = validate_settings(settings_from_options(options))

        workspace = Workspace.open(root, settings)
        return _run(options, workspace)
    except RollbackError as e:
        # Already reported through the notifier; partial changes may remain.
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (ValueError, HeadmarkError) as e:
        # Bad settings, or a document outside the collection.
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        # Catch other potential file or processing errors.
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
