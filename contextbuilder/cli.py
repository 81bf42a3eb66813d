"""Command-line front door for contextbuilder.

Scans a folder (or loads a saved tree JSON), selects files by glob, and
writes the aggregated context to stdout, a file or the clipboard. Token
counts, stats and non-fatal errors go to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

import pathspec

from .aggregate import OUTPUT_FORMATS, relative_display_path
from .errors import ScanError
from .log import configure_logging
from .scanner import DEFAULT_IGNORE_PATTERNS, scan_tree
from .selection import select_matching
from .session import ContextSession
from .settings import SettingsStore
from .state import BuilderState
from .tree_model import (
    TreeNode,
    format_tree_row,
    tree_from_dict,
    tree_to_dict,
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contextbuilder",
        description="Aggregate selected source files into one LLM-ready context document.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Folder or file to scan. Defaults to current directory.")
    parser.add_argument(
        "--select",
        metavar="GLOB",
        nargs="+",
        default=[],
        help="Select files whose root-relative path matches a gitignore-style glob.",
    )
    parser.add_argument("--all", action="store_true", help="Select every file in the tree.")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, default=None, help="Output format.")
    parser.add_argument(
        "--prepend-tree",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Put a rendering of the whole tree before the file contents.",
    )
    parser.add_argument(
        "--compress",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Replace function bodies in Python and TypeScript files with placeholders.",
    )
    parser.add_argument(
        "--remove-comments",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Strip comments from compressed files.",
    )
    parser.add_argument("--preamble", metavar="TEXT", default=None, help="Text wrapped in a tag before the output.")
    parser.add_argument("--query", metavar="TEXT", default=None, help="Text wrapped in a tag after the output.")
    parser.add_argument("--preamble-tag", metavar="TAG", default=None, help="Tag name around the preamble.")
    parser.add_argument("--query-tag", metavar="TAG", default=None, help="Tag name around the query.")
    parser.add_argument("--preset", metavar="NAME", default=None, help="Apply a saved preamble/query preset.")
    parser.add_argument("--save-preset", metavar="NAME", default=None, help="Save the preamble/query as preset NAME.")
    parser.add_argument(
        "--ignore",
        metavar="PATTERN",
        nargs="+",
        default=[],
        help="Extra gitignore-style patterns to skip while scanning.",
    )
    parser.add_argument("--show-hidden", action="store_true", help="Include dot-files and dot-directories.")
    parser.add_argument("--profile", metavar="ID", default=None, help="Load format settings saved under ID.")
    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Persist output settings under --profile.",
    )
    parser.add_argument(
        "--list-profiles",
        action="store_true",
        help="Print saved profile ids and preset names, then exit.",
    )
    parser.add_argument("--output", "-o", metavar="FILE", default=None, help="Write output to FILE instead of stdout.")
    parser.add_argument("--copy", action="store_true", help="Copy the output to the clipboard.")
    parser.add_argument("--stats", action="store_true", help="Print tree statistics to stderr.")
    parser.add_argument("--tree-json", metavar="FILE", default=None, help="Load the tree from a JSON file instead of scanning.")
    parser.add_argument("--dump-tree", metavar="FILE", default=None, help="Write the scanned tree as JSON to FILE.")
    parser.add_argument("--list", action="store_true", help="Print the tree with selection checkboxes instead of aggregating.")
    parser.add_argument("--search", metavar="TERM", default="", help="Filter --list rows to names containing TERM.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR).")
    parser.add_argument("--log-file", metavar="FILE", default=None, help="Also write logs to FILE.")
    return parser


def load_tree_json(path: Path) -> TreeNode:
    """Read a tree previously written by ``--dump-tree``."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return tree_from_dict(data)


def select_by_globs(tree: TreeNode | None, patterns: Sequence[str]) -> frozenset[str]:
    """Return file paths whose root-relative path matches any of ``patterns``."""
    if tree is None or not patterns:
        return frozenset()
    spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)

    def matches(node: TreeNode) -> bool:
        relative = node.name if node is tree else relative_display_path(tree.path, node.path)
        return spec.match_file(relative)

    return select_matching(tree, matches)


def render_profiles(store: SettingsStore) -> str:
    lines = [f"profile {configuration_id}" for configuration_id in store.configuration_ids()]
    lines.extend(f"preset {name}" for name in sorted(store.load_prompt_presets()))
    return "".join(line + "\n" for line in lines)


def render_listing(session: ContextSession) -> str:
    """Render every visible row with its checkbox, search matches highlighted."""
    session.expand_all()
    states = session.checkbox_states()
    highlighted = {node.path for node in session.state.search.matches}
    lines = [
        format_tree_row(
            row,
            states.get(row.path, "none"),
            stale=row.path in session.state.stale,
            highlighted=row.path in highlighted,
        )
        for row in session.visible_rows()
    ]
    return "".join(line + "\n" for line in lines)


def _err(message: str) -> None:
    sys.stderr.write(message + "\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Parse CLI arguments, build the context and return a process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.tree_json is not None and args.path is not None:
        parser.error("cannot combine positional path with --tree-json")
    if args.save_settings and not args.profile:
        parser.error("--save-settings requires --profile")

    configure_logging(args.log_level, Path(args.log_file) if args.log_file else None)

    store = SettingsStore()
    if args.list_profiles:
        sys.stdout.write(render_profiles(store))
        return EXIT_OK

    state = BuilderState(
        show_hidden=args.show_hidden,
        ignore_patterns=DEFAULT_IGNORE_PATTERNS + tuple(args.ignore),
    )
    if args.profile:
        state.configuration_id = args.profile
        state.settings = store.load_aggregation_settings(args.profile)
    session = ContextSession(state, settings_store=store, autosave_settings=args.save_settings)

    if args.tree_json is not None:
        try:
            tree = load_tree_json(Path(args.tree_json))
        except (OSError, ValueError) as exc:
            _err(f"Could not load tree from {args.tree_json}: {exc}")
            return EXIT_FAILURE
    else:
        root = Path(args.path) if args.path else Path.cwd()
        try:
            tree = scan_tree(root, show_hidden=state.show_hidden, ignore_patterns=state.ignore_patterns)
        except ScanError as exc:
            _err(f"Scan failed: {exc}")
            return EXIT_FAILURE
    session.load_tree(tree)

    if args.dump_tree is not None:
        try:
            Path(args.dump_tree).write_text(json.dumps(tree_to_dict(tree), indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            _err(f"Could not write tree to {args.dump_tree}: {exc}")
            return EXIT_FAILURE

    results = [
        session.apply_prompt_preset(args.preset) if args.preset is not None else None,
        session.set_format(args.format) if args.format is not None else None,
        session.set_prepend_tree(args.prepend_tree) if args.prepend_tree is not None else None,
    ]
    if args.compress is not None or args.remove_comments is not None:
        compress = session.state.settings.compress if args.compress is None else args.compress
        results.append(session.set_compression(compress, args.remove_comments))
    results.append(
        session.set_prompt(
            preamble=args.preamble,
            query=args.query,
            preamble_tag=args.preamble_tag,
            query_tag=args.query_tag,
        )
    )
    if args.save_preset is not None:
        results.append(session.save_prompt_preset(args.save_preset))
    for result in results:
        if result is not None and not result.ok:
            _err(result.error or "")

    if args.all:
        session.select_all()
    elif args.select:
        session.select_paths(select_by_globs(tree, args.select))

    if args.stats:
        stats = session.stats()
        _err(f"Files: {stats.files}  Folders: {stats.folders}  Lines: {stats.lines}  Tokens: {stats.tokens}")

    if args.list:
        session.set_search_term(args.search)
        sys.stdout.write(render_listing(session))
        if args.output is None and not args.copy:
            return EXIT_OK

    result = session.aggregate_now()
    for error in result.errors:
        _err(error)
    for failed_path in result.failed_paths:
        _err(f"Could not read {failed_path}")

    exit_code = EXIT_OK
    if args.output is not None:
        try:
            Path(args.output).write_text(result.text, encoding="utf-8")
        except OSError as exc:
            _err(f"Could not write {args.output}: {exc}")
            exit_code = EXIT_FAILURE
    elif not args.copy and not args.list:
        sys.stdout.write(result.text)

    if args.copy:
        copied = session.copy_to_clipboard()
        if not copied.ok:
            _err(copied.error or "Copy failed")
            exit_code = EXIT_FAILURE

    _err(f"{result.file_count} file(s), {result.token_count} tokens ({session.state.settings.format})")
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
