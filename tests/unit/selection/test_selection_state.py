"""Tests for selection toggles and derived checkbox states."""

from __future__ import annotations

import unittest

from contextbuilder.selection import (
    CHECKBOX_CHECKED,
    CHECKBOX_INDETERMINATE,
    CHECKBOX_NONE,
    CHECKBOX_UNCHECKED,
    checkbox_state,
    checkbox_states,
    clear_all,
    reconcile_selection,
    select_all,
    select_matching,
    toggle_path,
)
from contextbuilder.tree_model import TreeNode, find_by_path


def _file(path: str) -> TreeNode:
    return TreeNode(path=path, name=path.rsplit("/", 1)[-1], is_dir=False)


def _dir(path: str, *children: TreeNode) -> TreeNode:
    return TreeNode(path=path, name=path.rsplit("/", 1)[-1], is_dir=True, children=children)


def _sample_tree() -> TreeNode:
    return _dir(
        "/proj",
        _file("/proj/a.ts"),
        _dir("/proj/sub", _file("/proj/sub/b.py"), _file("/proj/sub/c.py")),
        _dir("/proj/empty", _dir("/proj/empty/nested")),
    )


class ToggleTests(unittest.TestCase):
    def test_file_toggle_flips_membership(self) -> None:
        tree = _sample_tree()
        selected = toggle_path(tree, frozenset(), "/proj/a.ts")
        self.assertEqual(selected, frozenset({"/proj/a.ts"}))
        self.assertEqual(toggle_path(tree, selected, "/proj/a.ts"), frozenset())

    def test_directory_toggle_is_uniform(self) -> None:
        tree = _sample_tree()
        all_sub = frozenset({"/proj/sub/b.py", "/proj/sub/c.py"})
        self.assertEqual(toggle_path(tree, frozenset(), "/proj/sub"), all_sub)
        self.assertEqual(toggle_path(tree, all_sub, "/proj/sub"), frozenset())

    def test_partially_selected_directory_completes_to_full_selection(self) -> None:
        tree = _sample_tree()
        partial = frozenset({"/proj/sub/b.py", "/proj/a.ts"})
        self.assertEqual(
            toggle_path(tree, partial, "/proj/sub"),
            frozenset({"/proj/a.ts", "/proj/sub/b.py", "/proj/sub/c.py"}),
        )

    def test_directory_without_files_and_unknown_paths_are_no_ops(self) -> None:
        tree = _sample_tree()
        selected = frozenset({"/proj/a.ts"})
        self.assertIs(toggle_path(tree, selected, "/proj/empty"), selected)
        self.assertIs(toggle_path(tree, selected, "/proj/missing"), selected)

    def test_toggle_twice_restores_selection_for_every_node(self) -> None:
        tree = _sample_tree()
        for start in (frozenset(), frozenset({"/proj/sub/b.py"}), select_all(tree)):
            for path in ("/proj", "/proj/a.ts", "/proj/sub", "/proj/empty"):
                once = toggle_path(tree, start, path)
                node = find_by_path(tree, path)
                assert node is not None
                state = checkbox_state(node, start)
                if state == CHECKBOX_INDETERMINATE:
                    # Completion to full selection is not undone by a second click.
                    continue
                self.assertEqual(toggle_path(tree, once, path), start, (sorted(start), path))

    def test_bulk_helpers(self) -> None:
        tree = _sample_tree()
        self.assertEqual(
            select_all(tree),
            frozenset({"/proj/a.ts", "/proj/sub/b.py", "/proj/sub/c.py"}),
        )
        self.assertEqual(clear_all(), frozenset())
        self.assertEqual(
            select_matching(tree, lambda node: node.name.endswith(".py")),
            frozenset({"/proj/sub/b.py", "/proj/sub/c.py"}),
        )

    def test_reconcile_drops_paths_missing_from_tree(self) -> None:
        tree = _sample_tree()
        self.assertEqual(
            reconcile_selection(tree, {"/proj/a.ts", "/proj/gone.ts", "/proj/sub"}),
            frozenset({"/proj/a.ts"}),
        )


class CheckboxStateTests(unittest.TestCase):
    def test_states_for_files_and_directories(self) -> None:
        tree = _sample_tree()
        states = checkbox_states(tree, frozenset({"/proj/sub/b.py"}))
        self.assertEqual(states["/proj/a.ts"], CHECKBOX_UNCHECKED)
        self.assertEqual(states["/proj/sub/b.py"], CHECKBOX_CHECKED)
        self.assertEqual(states["/proj/sub"], CHECKBOX_INDETERMINATE)
        self.assertEqual(states["/proj"], CHECKBOX_INDETERMINATE)
        self.assertEqual(states["/proj/empty"], CHECKBOX_NONE)
        self.assertEqual(states["/proj/empty/nested"], CHECKBOX_NONE)

    def test_bulk_state_matches_per_node_state(self) -> None:
        tree = _sample_tree()
        for selected in (frozenset(), frozenset({"/proj/a.ts"}), select_all(tree)):
            states = checkbox_states(tree, selected)
            for path, state in states.items():
                node = find_by_path(tree, path)
                assert node is not None
                self.assertEqual(checkbox_state(node, selected), state, path)

    def test_directory_states_when_fully_selected_or_empty_selection(self) -> None:
        tree = _sample_tree()
        self.assertEqual(checkbox_states(tree, select_all(tree))["/proj"], CHECKBOX_CHECKED)
        self.assertEqual(checkbox_states(tree, frozenset())["/proj"], CHECKBOX_UNCHECKED)


if __name__ == "__main__":
    unittest.main()
