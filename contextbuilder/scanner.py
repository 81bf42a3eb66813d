"""Filesystem scanning into immutable ``TreeNode`` trees."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

import pathspec

from .aggregate.content import read_text
from .errors import ScanError, TokenizerError
from .tree_model import TreeNode

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    ".git/",
    "node_modules/",
    "__pycache__/",
)


@dataclass(frozen=True)
class ScanOptions:
    """Knobs for one scan."""

    show_hidden: bool = False
    ignore_patterns: tuple[str, ...] = ()
    max_file_size: int = MAX_FILE_SIZE_BYTES


def compile_ignore_spec(patterns: Iterable[str]) -> pathspec.PathSpec:
    """Compile gitignore-style ``patterns``; blank lines and comments are skipped."""
    lines = [line.strip() for line in patterns if line.strip() and not line.lstrip().startswith("#")]
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def count_lines(text: str) -> int:
    """Count lines the way editors do: a trailing newline adds no extra line."""
    if not text:
        return 0
    return len(text.splitlines())


class _FileMetrics:
    """Line and token counter that stops counting tokens after the first tokenizer failure."""

    def __init__(self, count_tokens: Callable[[str], int] | None, max_file_size: int) -> None:
        self._count_tokens = count_tokens
        self._max_file_size = max_file_size

    def measure(self, path: Path, size: int) -> tuple[int, int]:
        if size > self._max_file_size:
            logger.debug("Skipping metrics for large file %s (%d bytes)", path, size)
            return 0, 0
        try:
            text = read_text(path)
        except OSError as exc:
            logger.debug("Could not read %s for metrics: %s", path, exc)
            return 0, 0
        tokens = 0
        if self._count_tokens is not None:
            try:
                tokens = self._count_tokens(text)
            except TokenizerError as exc:
                logger.warning("Token counting disabled for this scan: %s", exc)
                self._count_tokens = None
        return count_lines(text), tokens


def _relative_posix(root: Path, path: Path) -> str:
    return path.relative_to(root).as_posix()


def _scan_directory(
    directory: Path,
    root: Path,
    options: ScanOptions,
    ignore_spec: pathspec.PathSpec,
    metrics: _FileMetrics,
) -> tuple[TreeNode, ...]:
    try:
        with os.scandir(directory) as entries:
            listed = list(entries)
    except OSError as exc:
        logger.warning("Could not list %s: %s", directory, exc)
        return ()

    nodes: list[TreeNode] = []
    for entry in listed:
        name = entry.name
        if not options.show_hidden and name.startswith("."):
            continue
        child_path = Path(entry.path)
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False

        relative = _relative_posix(root, child_path)
        if ignore_spec.match_file(relative + "/" if is_dir else relative):
            continue

        size = 0
        last_modified = 0
        try:
            st = entry.stat(follow_symlinks=False)
            last_modified = int(st.st_mtime)
            if not is_dir:
                size = int(st.st_size)
        except OSError:
            pass

        if is_dir:
            nodes.append(
                TreeNode(
                    path=str(child_path),
                    name=name,
                    is_dir=True,
                    last_modified=last_modified,
                    children=_scan_directory(child_path, root, options, ignore_spec, metrics),
                )
            )
            continue

        if not entry.is_file():
            continue
        lines, tokens = metrics.measure(child_path, size)
        nodes.append(
            TreeNode(
                path=str(child_path),
                name=name,
                is_dir=False,
                lines=lines,
                tokens=tokens,
                size=size,
                last_modified=last_modified,
            )
        )

    nodes.sort(key=lambda node: (node.is_dir, node.name))
    return tuple(nodes)


def _default_count_tokens(text: str) -> int:
    from .tokens import count_tokens

    return count_tokens(text)


def scan_tree(
    root: str | Path,
    *,
    show_hidden: bool = False,
    ignore_patterns: Iterable[str] = (),
    count_tokens: Callable[[str], int] | None = _default_count_tokens,
    max_file_size: int = MAX_FILE_SIZE_BYTES,
) -> TreeNode:
    """Scan ``root`` into a tree of absolute-path nodes.

    Children are sorted files first, then by name. Dot-entries are hidden
    unless ``show_hidden``; ``ignore_patterns`` use gitignore syntax relative
    to ``root``. Pass ``count_tokens=None`` to skip tokenization.

    Raises ``ScanError`` when ``root`` is missing or cannot be listed.
    """
    try:
        root_path = Path(root).expanduser().resolve()
    except (OSError, RuntimeError) as exc:
        raise ScanError(f"could not resolve {root}: {exc}") from exc
    if not root_path.exists():
        raise ScanError(f"path not found: {root_path}")

    options = ScanOptions(
        show_hidden=show_hidden,
        ignore_patterns=tuple(ignore_patterns),
        max_file_size=max_file_size,
    )
    metrics = _FileMetrics(count_tokens, max_file_size)
    name = root_path.name or str(root_path)

    try:
        st = root_path.stat()
    except OSError as exc:
        raise ScanError(f"could not stat {root_path}: {exc}") from exc

    if not root_path.is_dir():
        lines, tokens = metrics.measure(root_path, int(st.st_size))
        return TreeNode(
            path=str(root_path),
            name=name,
            is_dir=False,
            lines=lines,
            tokens=tokens,
            size=int(st.st_size),
            last_modified=int(st.st_mtime),
        )

    if not os.access(root_path, os.R_OK | os.X_OK):
        raise ScanError(f"permission denied: {root_path}")

    ignore_spec = compile_ignore_spec(options.ignore_patterns)
    children = _scan_directory(root_path, root_path, options, ignore_spec, metrics)
    logger.info("Scanned %s (%d top-level entries)", root_path, len(children))
    return TreeNode(
        path=str(root_path),
        name=name,
        is_dir=True,
        last_modified=int(st.st_mtime),
        children=children,
    )


__all__ = [
    "MAX_FILE_SIZE_BYTES",
    "DEFAULT_IGNORE_PATTERNS",
    "ScanOptions",
    "compile_ignore_spec",
    "count_lines",
    "scan_tree",
]
