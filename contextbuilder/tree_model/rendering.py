"""Plain-text tree listings and tree-row formatting."""

from __future__ import annotations

import time

from .filtering import TreeRow
from .types import TreeNode

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "

CHECKBOX_MARKERS = {
    "checked": "[x]",
    "unchecked": "[ ]",
    "indeterminate": "[-]",
    "none": "   ",
}


def sorted_children(node: TreeNode) -> list[TreeNode]:
    """Sort children files first, then by case-sensitive name."""
    return sorted(node.children, key=lambda child: (child.is_dir, child.name))


def _label(node: TreeNode) -> str:
    return node.name + ("/" if node.is_dir else "")


def render_plain_tree(root: TreeNode | None) -> str:
    """Render the whole tree with box-drawing connectors.

    Directory names carry a trailing ``/``. Every line, including the last,
    ends with a newline; ``None`` renders as an empty string.
    """
    if root is None:
        return ""
    lines: list[str] = [_label(root)]
    # Frames are (node, inherited prefix, is last sibling), pushed in reverse
    # so the stack pops them in display order.
    stack: list[tuple[TreeNode, str, bool]] = []
    children = sorted_children(root)
    for idx in range(len(children) - 1, -1, -1):
        stack.append((children[idx], "", idx == len(children) - 1))
    while stack:
        node, prefix, is_last = stack.pop()
        lines.append(f"{prefix}{LAST_BRANCH if is_last else BRANCH}{_label(node)}")
        if not node.is_dir:
            continue
        child_prefix = prefix + (SPACE if is_last else PIPE)
        grandchildren = sorted_children(node)
        for idx in range(len(grandchildren) - 1, -1, -1):
            stack.append((grandchildren[idx], child_prefix, idx == len(grandchildren) - 1))
    return "\n".join(lines) + "\n"


def format_time_ago(last_modified: int, now: float | None = None) -> str:
    """Return a compact age label (``now``, ``5m``, ``3h``, ``2d``, ``1w``, ``4mo``, ``1y``)."""
    if last_modified <= 0:
        return ""
    current = time.time() if now is None else now
    seconds = int(current - last_modified)
    if seconds < 60:
        return "now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    days = hours // 24
    if days < 7:
        return f"{days}d"
    if days < 30:
        return f"{days // 7}w"
    if days < 365:
        return f"{days // 30}mo"
    return f"{days // 365}y"


def format_tree_row(
    row: TreeRow,
    checkbox: str,
    *,
    stale: bool = False,
    highlighted: bool = False,
    now: float | None = None,
) -> str:
    """Render one visible row as ``<cursor><indent><marker> <checkbox> <name> <meta>``."""
    node = row.node
    indent = "  " * row.depth
    if node.is_dir:
        marker = "▾" if row.is_open else "▸"
    else:
        marker = " "
    cursor = ">" if highlighted else " "
    box = CHECKBOX_MARKERS.get(checkbox, CHECKBOX_MARKERS["none"])
    meta: list[str] = []
    if not node.is_dir:
        if node.lines > 0:
            meta.append(f"{node.lines}L")
        if node.tokens > 0:
            meta.append(f"{node.tokens}T")
        age = format_time_ago(node.last_modified, now)
        if age:
            meta.append(age)
        if stale:
            meta.append("stale")
    suffix = f"  {' '.join(meta)}" if meta else ""
    return f"{cursor}{indent}{marker} {box} {_label(node)}{suffix}"


__all__ = [
    "sorted_children",
    "render_plain_tree",
    "format_time_ago",
    "format_tree_row",
]
