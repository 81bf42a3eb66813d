"""Tests for search-result cursor navigation."""

from __future__ import annotations

import unittest

from contextbuilder.search import SearchNavigation
from contextbuilder.tree_model import TreeNode


def _file(path: str) -> TreeNode:
    return TreeNode(path=path, name=path.rsplit("/", 1)[-1], is_dir=False)


def _dir(path: str, *children: TreeNode) -> TreeNode:
    return TreeNode(path=path, name=path.rsplit("/", 1)[-1], is_dir=True, children=children)


def _sample_tree() -> TreeNode:
    return _dir(
        "/p",
        _file("/p/api.py"),
        _dir("/p/api", _file("/p/api/client.py"), _file("/p/api/api_test.py")),
        _file("/p/other.txt"),
    )


class SearchNavigationTests(unittest.TestCase):
    def test_cursor_starts_unset_and_wraps_forward(self) -> None:
        nav = SearchNavigation.for_term(_sample_tree(), "api")
        self.assertEqual([node.path for node in nav.matches], ["/p/api.py", "/p/api", "/p/api/api_test.py"])
        self.assertIsNone(nav.index)
        self.assertIsNone(nav.highlighted_path)

        nav = nav.next()
        self.assertEqual(nav.highlighted_path, "/p/api.py")
        nav = nav.next().next()
        self.assertEqual(nav.highlighted_path, "/p/api/api_test.py")
        nav = nav.next()
        self.assertEqual(nav.index, 0)

    def test_previous_from_unset_goes_to_last_and_wraps(self) -> None:
        nav = SearchNavigation.for_term(_sample_tree(), "api").previous()
        self.assertEqual(nav.index, 2)
        nav = nav.previous().previous().previous()
        self.assertEqual(nav.index, 2)

    def test_cursor_always_in_range(self) -> None:
        nav = SearchNavigation.for_term(_sample_tree(), "api")
        for step in (1, 1, -1, 5, -7, 2, 1, 1):
            nav = nav.move(step)
            self.assertIsNotNone(nav.index)
            assert nav.index is not None
            self.assertTrue(0 <= nav.index < nav.match_count)

    def test_changing_term_resets_cursor(self) -> None:
        tree = _sample_tree()
        nav = SearchNavigation.for_term(tree, "api").next().next()
        self.assertIs(nav.with_term(tree, "api"), nav)
        changed = nav.with_term(tree, "client")
        self.assertIsNone(changed.index)
        self.assertEqual([node.path for node in changed.matches], ["/p/api/client.py"])

    def test_no_matches_navigation_is_inert(self) -> None:
        nav = SearchNavigation.for_term(_sample_tree(), "zzz")
        self.assertEqual(nav.match_count, 0)
        self.assertIs(nav.next(), nav)
        self.assertEqual(nav.activate(frozenset({"/p/api.py"})), frozenset({"/p/api.py"}))

    def test_activate_uses_click_semantics(self) -> None:
        nav = SearchNavigation.for_term(_sample_tree(), "api").next().next()
        self.assertEqual(nav.highlighted_path, "/p/api")
        selected = nav.activate(frozenset({"/p/api/client.py"}))
        self.assertEqual(selected, frozenset({"/p/api/client.py", "/p/api/api_test.py"}))
        self.assertEqual(nav.activate(selected), frozenset())

    def test_cleared_drops_term_and_matches(self) -> None:
        nav = SearchNavigation.for_term(_sample_tree(), "api").next().cleared()
        self.assertEqual((nav.term, nav.matches, nav.index), ("", (), None))


if __name__ == "__main__":
    unittest.main()
