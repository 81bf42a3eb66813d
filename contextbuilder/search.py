"""Search-result navigation over name matches.

``SearchNavigation`` is an immutable value: each transition returns a new
instance. The cursor is ``None`` until the user steps onto a result and resets
whenever the term changes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .selection import toggle_node
from .tree_model import TreeNode, collect_search_matches


@dataclass(frozen=True)
class SearchNavigation:
    term: str = ""
    matches: tuple[TreeNode, ...] = ()
    index: int | None = None

    @classmethod
    def for_term(cls, tree: TreeNode | None, term: str) -> "SearchNavigation":
        """Collect pre-order, path-unique matches for ``term``."""
        return cls(term=term, matches=tuple(collect_search_matches(tree, term)), index=None)

    def with_term(self, tree: TreeNode | None, term: str) -> "SearchNavigation":
        """Return navigation for ``term``; an unchanged term keeps the cursor."""
        if term == self.term:
            return self
        return SearchNavigation.for_term(tree, term)

    def refreshed(self, tree: TreeNode | None) -> "SearchNavigation":
        """Recollect matches after the tree was replaced and reset the cursor."""
        return SearchNavigation.for_term(tree, self.term)

    @property
    def match_count(self) -> int:
        return len(self.matches)

    def move(self, direction: int) -> "SearchNavigation":
        """Step the cursor by ``direction`` with wrap-around.

        Moving forward from no cursor lands on the first match; moving back
        lands on the last.
        """
        if not self.matches or direction == 0:
            return self
        count = len(self.matches)
        if self.index is None:
            start = -1 if direction > 0 else 0
        else:
            start = self.index
        return replace(self, index=(start + direction) % count)

    def next(self) -> "SearchNavigation":
        return self.move(1)

    def previous(self) -> "SearchNavigation":
        return self.move(-1)

    def current(self) -> TreeNode | None:
        if self.index is None or not (0 <= self.index < len(self.matches)):
            return None
        return self.matches[self.index]

    @property
    def highlighted_path(self) -> str | None:
        node = self.current()
        return node.path if node is not None else None

    def activate(self, selection: frozenset[str]) -> frozenset[str]:
        """Toggle the highlighted match with direct-click semantics."""
        node = self.current()
        if node is None:
            return selection
        return toggle_node(selection, node)

    def cleared(self) -> "SearchNavigation":
        return SearchNavigation()


__all__ = ["SearchNavigation"]
