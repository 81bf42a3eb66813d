"""Selection state transitions and derived checkbox states.

Selections are ``frozenset`` values holding file paths only. Every transition
returns a new set; callers own the current value.
"""

from __future__ import annotations

from collections.abc import Iterable

from .tree_model import TreeNode, all_file_paths, find_by_path, iter_preorder

CHECKBOX_CHECKED = "checked"
CHECKBOX_UNCHECKED = "unchecked"
CHECKBOX_INDETERMINATE = "indeterminate"
CHECKBOX_NONE = "none"


def toggle_node(selection: frozenset[str], node: TreeNode) -> frozenset[str]:
    """Toggle ``node`` as a direct click would.

    A file flips its own membership. A directory is toggled uniformly over its
    descendant files: when all are selected they are removed, otherwise all
    are added, so a partially selected directory completes to full selection.
    """
    if not node.is_dir:
        if node.path in selection:
            return selection - {node.path}
        return selection | {node.path}

    files = all_file_paths(node)
    if not files:
        return selection
    if all(path in selection for path in files):
        return selection.difference(files)
    return selection.union(files)


def toggle_path(tree: TreeNode | None, selection: frozenset[str], path: str) -> frozenset[str]:
    """Toggle the node at ``path``; unknown paths leave ``selection`` unchanged."""
    node = find_by_path(tree, path)
    if node is None:
        return selection
    return toggle_node(selection, node)


def select_all(tree: TreeNode | None) -> frozenset[str]:
    """Select every file in ``tree``."""
    return frozenset(all_file_paths(tree))


def clear_all() -> frozenset[str]:
    return frozenset()


def select_matching(tree: TreeNode | None, predicate) -> frozenset[str]:
    """Select every file node for which ``predicate(node)`` is true."""
    return frozenset(node.path for node in iter_preorder(tree) if not node.is_dir and predicate(node))


def checkbox_state(node: TreeNode, selection: frozenset[str] | set[str]) -> str:
    """Derive the tri-state checkbox value for ``node``.

    Directories without descendant files report ``"none"`` (no checkbox).
    """
    if not node.is_dir:
        return CHECKBOX_CHECKED if node.path in selection else CHECKBOX_UNCHECKED
    files = all_file_paths(node)
    if not files:
        return CHECKBOX_NONE
    selected_count = sum(1 for path in files if path in selection)
    if selected_count == 0:
        return CHECKBOX_UNCHECKED
    if selected_count == len(files):
        return CHECKBOX_CHECKED
    return CHECKBOX_INDETERMINATE


def checkbox_states(tree: TreeNode | None, selection: frozenset[str] | set[str]) -> dict[str, str]:
    """Derive checkbox states for every node of ``tree`` in one post-order pass."""
    states: dict[str, str] = {}
    if tree is None:
        return states
    # path -> (total descendant files, selected descendant files)
    counts: dict[str, tuple[int, int]] = {}
    stack: list[tuple[TreeNode, bool]] = [(tree, False)]
    while stack:
        node, children_done = stack.pop()
        if not node.is_dir:
            selected = 1 if node.path in selection else 0
            counts[node.path] = (1, selected)
            states[node.path] = CHECKBOX_CHECKED if selected else CHECKBOX_UNCHECKED
            continue
        if not children_done:
            stack.append((node, True))
            stack.extend((child, False) for child in node.children)
            continue
        total = sum(counts[child.path][0] for child in node.children)
        selected = sum(counts[child.path][1] for child in node.children)
        counts[node.path] = (total, selected)
        if total == 0:
            states[node.path] = CHECKBOX_NONE
        elif selected == 0:
            states[node.path] = CHECKBOX_UNCHECKED
        elif selected == total:
            states[node.path] = CHECKBOX_CHECKED
        else:
            states[node.path] = CHECKBOX_INDETERMINATE
    return states


def reconcile_selection(tree: TreeNode | None, selection: Iterable[str]) -> frozenset[str]:
    """Drop selected paths that are not file nodes of ``tree``."""
    files = set(all_file_paths(tree))
    return frozenset(path for path in selection if path in files)


__all__ = [
    "CHECKBOX_CHECKED",
    "CHECKBOX_UNCHECKED",
    "CHECKBOX_INDETERMINATE",
    "CHECKBOX_NONE",
    "toggle_node",
    "toggle_path",
    "select_all",
    "clear_all",
    "select_matching",
    "checkbox_state",
    "checkbox_states",
    "reconcile_selection",
]
