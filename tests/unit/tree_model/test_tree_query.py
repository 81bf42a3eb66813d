"""Tests for pure tree query helpers."""

from __future__ import annotations

import unittest

from contextbuilder.tree_model import (
    TreeNode,
    all_descendant_dir_paths,
    all_file_paths,
    depth_index,
    depth_of,
    find_by_path,
    matches,
    subtree_match_index,
    subtree_matches,
    tree_from_dict,
    tree_to_dict,
)


def _file(path: str, **kwargs) -> TreeNode:
    return TreeNode(path=path, name=path.rsplit("/", 1)[-1], is_dir=False, **kwargs)


def _dir(path: str, *children: TreeNode) -> TreeNode:
    return TreeNode(path=path, name=path.rsplit("/", 1)[-1], is_dir=True, children=children)


def _sample_tree() -> TreeNode:
    return _dir(
        "/proj",
        _file("/proj/README.md"),
        _dir(
            "/proj/src",
            _file("/proj/src/main.py"),
            _dir("/proj/src/util", _file("/proj/src/util/Helpers.py")),
        ),
        _dir("/proj/empty"),
    )


class TreeQueryTests(unittest.TestCase):
    def test_all_file_paths_is_preorder(self) -> None:
        self.assertEqual(
            all_file_paths(_sample_tree()),
            ["/proj/README.md", "/proj/src/main.py", "/proj/src/util/Helpers.py"],
        )

    def test_none_input_yields_empty_results(self) -> None:
        self.assertEqual(all_file_paths(None), [])
        self.assertEqual(all_descendant_dir_paths(None), [])
        self.assertIsNone(find_by_path(None, "/proj"))
        self.assertIsNone(depth_of(None, "/proj"))

    def test_descendant_dir_paths_include_the_node_itself(self) -> None:
        self.assertEqual(
            all_descendant_dir_paths(_sample_tree()),
            ["/proj", "/proj/src", "/proj/src/util", "/proj/empty"],
        )
        self.assertEqual(all_descendant_dir_paths(_file("/x.py")), [])

    def test_find_and_depth(self) -> None:
        tree = _sample_tree()
        node = find_by_path(tree, "/proj/src/util")
        self.assertIsNotNone(node)
        assert node is not None
        self.assertTrue(node.is_dir)
        self.assertEqual(depth_of(tree, "/proj"), 0)
        self.assertEqual(depth_of(tree, "/proj/src/util/Helpers.py"), 3)
        self.assertIsNone(depth_of(tree, "/proj/missing"))
        self.assertEqual(depth_index(tree)["/proj/src/main.py"], 2)

    def test_matches_is_case_insensitive_and_empty_term_matches(self) -> None:
        node = _file("/proj/src/util/Helpers.py")
        self.assertTrue(matches(node, "helpers"))
        self.assertTrue(matches(node, "ERS.P"))
        self.assertTrue(matches(node, ""))
        self.assertFalse(matches(node, "main"))

    def test_subtree_matches_and_index_agree(self) -> None:
        tree = _sample_tree()
        index = subtree_match_index(tree, "help")
        self.assertTrue(index["/proj"])
        self.assertTrue(index["/proj/src"])
        self.assertTrue(index["/proj/src/util"])
        self.assertFalse(index["/proj/empty"])
        self.assertFalse(index["/proj/README.md"])
        for path, expected in index.items():
            node = find_by_path(tree, path)
            assert node is not None
            self.assertEqual(subtree_matches(node, "help"), expected, path)


class TreeJsonTests(unittest.TestCase):
    def test_dict_round_trip_preserves_tree(self) -> None:
        tree = _dir("/proj", _file("/proj/a.ts", lines=3, tokens=7, size=20, last_modified=1700000000))
        self.assertEqual(tree_from_dict(tree_to_dict(tree)), tree)

    def test_from_dict_coerces_numeric_strings_and_requires_path(self) -> None:
        node = tree_from_dict({"path": "/p/a.py", "is_dir": False, "last_modified": "1700000000", "size": 4})
        self.assertEqual(node.name, "a.py")
        self.assertEqual(node.last_modified, 1700000000)
        self.assertEqual(node.size, 4)
        with self.assertRaises(ValueError):
            tree_from_dict({"name": "nopath"})


if __name__ == "__main__":
    unittest.main()
