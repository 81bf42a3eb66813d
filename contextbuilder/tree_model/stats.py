"""Aggregate counters and watch payloads derived from a scanned tree."""

from __future__ import annotations

from dataclasses import dataclass

from .query import iter_preorder
from .types import TreeNode


@dataclass(frozen=True)
class TreeStats:
    files: int = 0
    folders: int = 0
    lines: int = 0
    tokens: int = 0


@dataclass(frozen=True)
class WatchedFile:
    """Size/modification snapshot a file monitor compares against."""

    last_modified: int
    size: int


def calculate_tree_stats(root: TreeNode | None) -> TreeStats:
    """Count files, folders (excluding the root folder), lines and tokens."""
    if root is None:
        return TreeStats()
    files = folders = lines = tokens = 0
    for node in iter_preorder(root):
        if node.is_dir:
            folders += 1
            continue
        files += 1
        lines += node.lines
        tokens += node.tokens
    if root.is_dir:
        folders = max(0, folders - 1)
    return TreeStats(files=files, folders=folders, lines=lines, tokens=tokens)


def monitorable_files(root: TreeNode | None) -> dict[str, WatchedFile]:
    """Map every file path to the size/mtime recorded at scan time."""
    return {
        node.path: WatchedFile(last_modified=node.last_modified, size=node.size)
        for node in iter_preorder(root)
        if not node.is_dir
    }


__all__ = ["TreeStats", "WatchedFile", "calculate_tree_stats", "monitorable_files"]
