"""Expansion state transitions over directory paths.

Level-wise operations only look at the current expansion frontier (the
deepest expanded directories), so their cost follows the frontier size rather
than re-deriving expansion for the whole tree. None of these functions touch
the selection.
"""

from __future__ import annotations

from collections.abc import Iterable

from .tree_model import TreeNode, all_descendant_dir_paths, iter_preorder_with_depth


def toggle_expanded(expanded: frozenset[str], path: str) -> frozenset[str]:
    """Open ``path`` when closed, close it when open."""
    if path in expanded:
        return expanded - {path}
    return expanded | {path}


def _directory_index(tree: TreeNode) -> dict[str, tuple[TreeNode, int]]:
    return {node.path: (node, depth) for node, depth in iter_preorder_with_depth(tree) if node.is_dir}


def expand_one_level(tree: TreeNode | None, expanded: frozenset[str]) -> frozenset[str]:
    """Open the next level below the deepest expanded directories.

    When nothing in the tree is expanded yet, only the root is opened.
    """
    if tree is None or not tree.is_dir:
        return expanded
    directories = _directory_index(tree)
    known = [path for path in expanded if path in directories]
    if not known:
        return expanded | {tree.path}

    max_depth = max(directories[path][1] for path in known)
    opened: set[str] = set()
    for path in known:
        node, depth = directories[path]
        if depth != max_depth:
            continue
        opened.update(child.path for child in node.children if child.is_dir)
    if not opened:
        return expanded
    return expanded | opened


def collapse_one_level(tree: TreeNode | None, expanded: frozenset[str]) -> frozenset[str]:
    """Close every expanded directory at the deepest expanded level.

    The root sits at depth 0, so it closes last, once it is the only expanded
    directory left.
    """
    if tree is None:
        return expanded
    directories = _directory_index(tree)
    known = [path for path in expanded if path in directories]
    if not known:
        return expanded
    max_depth = max(directories[path][1] for path in known)
    return expanded.difference(path for path in known if directories[path][1] == max_depth)


def expand_all(tree: TreeNode | None, expanded: frozenset[str]) -> frozenset[str]:
    return expanded.union(all_descendant_dir_paths(tree))


def collapse_all() -> frozenset[str]:
    return frozenset()


def reconcile_expanded(tree: TreeNode | None, expanded: Iterable[str]) -> frozenset[str]:
    """Drop expanded paths that are not directories of ``tree``."""
    directories = set(all_descendant_dir_paths(tree))
    return frozenset(path for path in expanded if path in directories)


__all__ = [
    "toggle_expanded",
    "expand_one_level",
    "collapse_one_level",
    "expand_all",
    "collapse_all",
    "reconcile_expanded",
]
