from __future__ import annotations

from dataclasses import dataclass, field

from .aggregate import AggregationResult, AggregationSettings
from .search import SearchNavigation
from .tree_model import TreeNode


@dataclass
class BuilderState:
    tree: TreeNode | None = None
    root_path: str | None = None
    configuration_id: str | None = None
    selected: frozenset[str] = field(default_factory=frozenset)
    expanded: frozenset[str] = field(default_factory=frozenset)
    stale: frozenset[str] = field(default_factory=frozenset)
    search: SearchNavigation = field(default_factory=SearchNavigation)
    settings: AggregationSettings = field(default_factory=AggregationSettings)
    show_hidden: bool = False
    ignore_patterns: tuple[str, ...] = ()
    generation: int = 0
    aggregation: AggregationResult | None = None
    aggregation_pending: bool = False
    last_error: str | None = None

    def bump_generation(self) -> int:
        """Advance the input generation; results from older generations are stale."""
        self.generation += 1
        return self.generation
