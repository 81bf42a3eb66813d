"""Domain model for scanned file trees.

This package contains non-UI tree primitives:
- the immutable ``TreeNode`` datatype and its JSON form
- pure query helpers (lookup, depth, descendants, name matching)
- search-filtered projections with forced expansion
- plain-text tree rendering and tree statistics
"""

from __future__ import annotations

from .filtering import (
    TreeRow,
    build_visible_rows,
    collect_search_matches,
    effective_expanded,
    forced_open_paths,
    visible_paths,
)
from .query import (
    all_descendant_dir_paths,
    all_file_paths,
    depth_index,
    depth_of,
    find_by_path,
    iter_preorder,
    iter_preorder_with_depth,
    matches,
    subtree_match_index,
    subtree_matches,
)
from .rendering import format_time_ago, format_tree_row, render_plain_tree, sorted_children
from .stats import TreeStats, WatchedFile, calculate_tree_stats, monitorable_files
from .types import TreeNode, tree_from_dict, tree_to_dict

__all__ = [
    "TreeNode",
    "tree_to_dict",
    "tree_from_dict",
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
    "TreeRow",
    "visible_paths",
    "forced_open_paths",
    "effective_expanded",
    "collect_search_matches",
    "build_visible_rows",
    "sorted_children",
    "render_plain_tree",
    "format_time_ago",
    "format_tree_row",
    "TreeStats",
    "WatchedFile",
    "calculate_tree_stats",
    "monitorable_files",
]
