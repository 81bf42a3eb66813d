"""Tree node datatype shared by query, selection and aggregation modules."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TreeNode:
    """One scanned file or directory with recursively nested children.

    ``path`` is the unique identifier of the node inside one tree. Files never
    carry children; directories may have an empty ``children`` tuple.
    """

    path: str
    name: str
    is_dir: bool
    lines: int = 0
    tokens: int = 0
    size: int = 0
    last_modified: int = 0
    children: tuple["TreeNode", ...] = ()


def tree_to_dict(node: TreeNode) -> dict[str, object]:
    """Serialize ``node`` and its subtree to plain JSON-compatible data."""

    def convert(current: TreeNode) -> dict[str, object]:
        return {
            "path": current.path,
            "name": current.name,
            "is_dir": current.is_dir,
            "lines": current.lines,
            "tokens": current.tokens,
            "size": current.size,
            "last_modified": current.last_modified,
            "children": [convert(child) for child in current.children],
        }

    return convert(node)


def _coerce_int(value: object) -> int:
    """Normalize JSON scalars to non-negative ints.

    Numeric strings are accepted since older scans stored timestamps as text.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value))
    if isinstance(value, str):
        try:
            return max(0, int(value.strip()))
        except ValueError:
            return 0
    return 0


def tree_from_dict(data: object) -> TreeNode:
    """Rebuild a ``TreeNode`` from data produced by ``tree_to_dict``.

    Raises ``ValueError`` when a node lacks a string ``path``.
    """
    if not isinstance(data, dict):
        raise ValueError("tree node must be a JSON object")
    path = data.get("path")
    if not isinstance(path, str) or not path:
        raise ValueError("tree node is missing a string 'path'")
    name = data.get("name")
    if not isinstance(name, str):
        name = path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    is_dir = bool(data.get("is_dir", False))
    raw_children = data.get("children") or []
    children: tuple[TreeNode, ...] = ()
    if is_dir and isinstance(raw_children, list):
        children = tuple(tree_from_dict(child) for child in raw_children)
    return TreeNode(
        path=path,
        name=name,
        is_dir=is_dir,
        lines=_coerce_int(data.get("lines")),
        tokens=_coerce_int(data.get("tokens")),
        size=_coerce_int(data.get("size")),
        last_modified=_coerce_int(data.get("last_modified")),
        children=children,
    )


__all__ = ["TreeNode", "tree_to_dict", "tree_from_dict"]
