"""Pure lookup and enumeration helpers over ``TreeNode`` hierarchies.

Every traversal is pre-order and driven by an explicit stack, so deeply
nested directories cannot exhaust the interpreter's recursion limit.
"""

from __future__ import annotations

from collections.abc import Iterator

from .types import TreeNode


def iter_preorder(node: TreeNode | None) -> Iterator[TreeNode]:
    """Yield ``node`` and all of its descendants in pre-order."""
    if node is None:
        return
    stack: list[TreeNode] = [node]
    while stack:
        current = stack.pop()
        yield current
        if current.children:
            stack.extend(reversed(current.children))


def iter_preorder_with_depth(node: TreeNode | None) -> Iterator[tuple[TreeNode, int]]:
    """Yield ``(node, depth)`` pairs in pre-order, ``node`` itself at depth 0."""
    if node is None:
        return
    stack: list[tuple[TreeNode, int]] = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        yield current, depth
        if current.children:
            stack.extend((child, depth + 1) for child in reversed(current.children))


def all_file_paths(node: TreeNode | None) -> list[str]:
    """Return every file path at or under ``node`` in pre-order."""
    return [current.path for current in iter_preorder(node) if not current.is_dir]


def all_descendant_dir_paths(node: TreeNode | None) -> list[str]:
    """Return every directory path at or under ``node``, including ``node``."""
    return [current.path for current in iter_preorder(node) if current.is_dir]


def find_by_path(root: TreeNode | None, path: str) -> TreeNode | None:
    """Return the first pre-order node whose path equals ``path``."""
    for current in iter_preorder(root):
        if current.path == path:
            return current
    return None


def depth_of(root: TreeNode | None, path: str) -> int | None:
    """Return the number of edges from ``root`` to ``path`` (root is 0)."""
    for current, depth in iter_preorder_with_depth(root):
        if current.path == path:
            return depth
    return None


def depth_index(root: TreeNode | None) -> dict[str, int]:
    """Map every path in the tree to its depth, in one pass."""
    return {current.path: depth for current, depth in iter_preorder_with_depth(root)}


def matches(node: TreeNode, term: str) -> bool:
    """Case-insensitive substring test against ``node.name``."""
    if not term:
        return True
    return term.casefold() in node.name.casefold()


def subtree_matches(node: TreeNode, term: str) -> bool:
    """Return whether ``node`` or any descendant matches ``term``."""
    if not term:
        return True
    folded = term.casefold()
    return any(folded in current.name.casefold() for current in iter_preorder(node))


def subtree_match_index(root: TreeNode | None, term: str) -> dict[str, bool]:
    """Compute ``subtree_matches`` for every node of ``root`` in one pass.

    Uses an explicit post-order walk so each node is visited once instead of
    re-scanning subtrees per ancestor.
    """
    result: dict[str, bool] = {}
    if root is None:
        return result
    folded = term.casefold()
    stack: list[tuple[TreeNode, bool]] = [(root, False)]
    while stack:
        current, children_done = stack.pop()
        if not children_done:
            stack.append((current, True))
            stack.extend((child, False) for child in current.children)
            continue
        hit = not folded or folded in current.name.casefold()
        if not hit:
            hit = any(result.get(child.path, False) for child in current.children)
        result[current.path] = hit
    return result


__all__ = [
    "iter_preorder",
    "iter_preorder_with_depth",
    "all_file_paths",
    "all_descendant_dir_paths",
    "find_by_path",
    "depth_of",
    "depth_index",
    "matches",
    "subtree_matches",
    "subtree_match_index",
]
