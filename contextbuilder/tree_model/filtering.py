"""Search-filtered tree projections.

A non-empty search term prunes every node whose subtree has no name match and
forces every surviving directory open for display. The caller's expanded set
is never modified; the forced set is unioned in for the projection only.
"""

from __future__ import annotations

from dataclasses import dataclass

from .query import matches, subtree_match_index
from .types import TreeNode


@dataclass(frozen=True)
class TreeRow:
    """One visible row of the tree pane."""

    node: TreeNode
    depth: int
    is_open: bool = False
    is_match: bool = False

    @property
    def path(self) -> str:
        return self.node.path


def visible_paths(root: TreeNode | None, term: str) -> list[str]:
    """Return pre-order paths of nodes that survive pruning for ``term``."""
    if root is None:
        return []
    index = subtree_match_index(root, term)
    out: list[str] = []
    stack: list[TreeNode] = [root]
    while stack:
        current = stack.pop()
        if not index.get(current.path, False):
            continue
        out.append(current.path)
        stack.extend(reversed(current.children))
    return out


def forced_open_paths(root: TreeNode | None, term: str) -> frozenset[str]:
    """Return directories forced open because they or their subtree match."""
    if root is None or not term:
        return frozenset()
    index = subtree_match_index(root, term)
    forced: set[str] = set()
    stack: list[TreeNode] = [root]
    while stack:
        current = stack.pop()
        if not current.is_dir or not index.get(current.path, False):
            continue
        forced.add(current.path)
        stack.extend(current.children)
    return frozenset(forced)


def effective_expanded(root: TreeNode | None, expanded: frozenset[str] | set[str], term: str) -> frozenset[str]:
    """Union ``expanded`` with the search-forced set for rendering."""
    return frozenset(expanded) | forced_open_paths(root, term)


def collect_search_matches(root: TreeNode | None, term: str) -> list[TreeNode]:
    """Collect matching nodes in pre-order, de-duplicated by path.

    An empty term yields no matches; navigation only exists while searching.
    """
    if root is None or not term:
        return []
    index = subtree_match_index(root, term)
    seen: set[str] = set()
    found: list[TreeNode] = []
    stack: list[TreeNode] = [root]
    while stack:
        current = stack.pop()
        if not index.get(current.path, False):
            continue
        if matches(current, term) and current.path not in seen:
            seen.add(current.path)
            found.append(current)
        stack.extend(reversed(current.children))
    return found


def build_visible_rows(
    root: TreeNode | None,
    expanded: frozenset[str] | set[str],
    term: str = "",
) -> tuple[list[TreeRow], frozenset[str]]:
    """Build display rows for ``root`` honoring expansion and search state.

    Returns ``(rows, render_expanded)`` where ``render_expanded`` is the
    expanded set actually used, including search-forced directories.
    """
    if root is None:
        return [], frozenset(expanded)
    index = subtree_match_index(root, term)
    render_expanded = effective_expanded(root, expanded, term)
    rows: list[TreeRow] = []
    stack: list[tuple[TreeNode, int]] = [(root, 0)]
    while stack:
        current, depth = stack.pop()
        if not index.get(current.path, False):
            continue
        is_open = current.is_dir and current.path in render_expanded
        rows.append(
            TreeRow(
                node=current,
                depth=depth,
                is_open=is_open,
                is_match=bool(term) and matches(current, term),
            )
        )
        if is_open:
            stack.extend((child, depth + 1) for child in reversed(current.children))
    return rows, render_expanded


__all__ = [
    "TreeRow",
    "visible_paths",
    "forced_open_paths",
    "effective_expanded",
    "collect_search_matches",
    "build_visible_rows",
]
