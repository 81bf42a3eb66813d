"""Stateful front for one context-building session.

``ContextSession`` owns a ``BuilderState`` and applies user actions to it via
the pure selection, expansion, search and aggregation functions. Collaborators
(scanner, content reader, tokenizer, settings store, file monitor, clipboard)
are injected so tests can replace them. Collaborator failures come back as
``OperationResult`` values; the session never raises for them.

Every change that affects aggregated output bumps ``state.generation``.
Background aggregation results are only committed when their generation
matches the current one.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from .aggregate import (
    OUTPUT_FORMATS,
    AggregationResult,
    AggregationScheduler,
    AggregationSettings,
    BatchReader,
    aggregate,
    read_many,
)
from .clipboard import copy_text
from .errors import MonitorError, OperationResult, ScanError, SettingsStoreError
from .expansion import (
    collapse_all,
    collapse_one_level,
    expand_all,
    expand_one_level,
    reconcile_expanded,
    toggle_expanded,
)
from .scanner import scan_tree
from .selection import checkbox_states, clear_all, reconcile_selection, select_all, toggle_path
from .settings import PromptPreset, SettingsStore
from .staleness import FileMonitor, StalenessReconciler
from .state import BuilderState
from .tree_model import (
    TreeNode,
    TreeRow,
    TreeStats,
    build_visible_rows,
    calculate_tree_stats,
    iter_preorder,
    monitorable_files,
)
from .tree_model import effective_expanded as _effective_expanded
from .tree_model import visible_paths as _visible_paths

logger = logging.getLogger(__name__)

EVENT_TREE = "tree"
EVENT_SELECTION = "selection"
EVENT_EXPANSION = "expansion"
EVENT_SEARCH = "search"
EVENT_SETTINGS = "settings"
EVENT_STALE = "stale"
EVENT_AGGREGATION = "aggregation"
EVENT_ERROR = "error"

ChangeListener = Callable[[str], None]
Scanner = Callable[..., TreeNode]


class ContextSession:
    def __init__(
        self,
        state: BuilderState | None = None,
        *,
        scanner: Scanner = scan_tree,
        read_many: BatchReader = read_many,
        count_tokens: Callable[[str], int] | None = None,
        settings_store: SettingsStore | None = None,
        monitor: FileMonitor | None = None,
        scheduler: AggregationScheduler | None = None,
        copy_text: Callable[[str], str | None] = copy_text,
        autosave_settings: bool = True,
    ) -> None:
        self.state = state or BuilderState()
        self._scanner = scanner
        self._run_aggregation = functools.partial(
            aggregate,
            read_many=read_many,
            count_tokens=count_tokens,
        )
        self._settings_store = settings_store
        self._autosave_settings = autosave_settings
        self._monitor = monitor
        self._scheduler = scheduler or AggregationScheduler(self._run_aggregation)
        self._copy_text = copy_text
        self._staleness = StalenessReconciler(self.state.stale)
        self._listeners: list[ChangeListener] = []
        if self._monitor is not None:
            self._monitor.subscribe(self.on_stale_update)

    # Change notification

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` for event names; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _fail(self, label: str, exc: BaseException | str) -> OperationResult:
        result = OperationResult.failure(label, exc)
        self.state.last_error = result.error
        logger.warning("%s", result.error)
        self._notify(EVENT_ERROR)
        return result

    def _output_changed(self, event: str) -> None:
        self.state.bump_generation()
        self._notify(event)

    # Tree lifecycle

    def load_tree(self, tree: TreeNode | None) -> None:
        """Install ``tree`` and reconcile every path-keyed set against it."""
        state = self.state
        state.tree = tree
        if tree is not None:
            state.root_path = tree.path
        state.selected = reconcile_selection(tree, state.selected)
        state.expanded = reconcile_expanded(tree, state.expanded)
        state.stale = self._staleness.clear()
        state.search = state.search.refreshed(tree)
        state.aggregation = None
        self._output_changed(EVENT_TREE)

    def rescan(self) -> OperationResult:
        """Rescan the configured root, then restart monitoring on the new snapshot."""
        state = self.state
        if not state.root_path:
            return self._fail("Scan failed", "no root folder configured")
        try:
            tree = self._scanner(
                state.root_path,
                show_hidden=state.show_hidden,
                ignore_patterns=state.ignore_patterns,
            )
        except ScanError as exc:
            return self._fail("Scan failed", exc)
        self.load_tree(tree)
        if state.configuration_id and self._monitor is not None:
            return self.start_monitoring()
        return OperationResult.success()

    # Selection

    def _set_selected(self, selected: frozenset[str]) -> None:
        if selected == self.state.selected:
            return
        self.state.selected = selected
        self._output_changed(EVENT_SELECTION)

    def toggle_selection(self, path: str) -> None:
        self._set_selected(toggle_path(self.state.tree, self.state.selected, path))

    def select_all(self) -> None:
        self._set_selected(select_all(self.state.tree))

    def clear_selection(self) -> None:
        self._set_selected(clear_all())

    def select_paths(self, paths: Iterable[str]) -> None:
        """Replace the selection with the known file paths among ``paths``."""
        self._set_selected(reconcile_selection(self.state.tree, paths))

    def checkbox_states(self) -> dict[str, str]:
        return checkbox_states(self.state.tree, self.state.selected)

    # Expansion

    def _set_expanded(self, expanded: frozenset[str]) -> None:
        if expanded == self.state.expanded:
            return
        self.state.expanded = expanded
        self._notify(EVENT_EXPANSION)

    def toggle_expanded(self, path: str) -> None:
        self._set_expanded(toggle_expanded(self.state.expanded, path))

    def expand_one_level(self) -> None:
        self._set_expanded(expand_one_level(self.state.tree, self.state.expanded))

    def collapse_one_level(self) -> None:
        self._set_expanded(collapse_one_level(self.state.tree, self.state.expanded))

    def expand_all(self) -> None:
        self._set_expanded(expand_all(self.state.tree, self.state.expanded))

    def collapse_all(self) -> None:
        self._set_expanded(collapse_all())

    # Search

    def set_search_term(self, term: str) -> None:
        search = self.state.search.with_term(self.state.tree, term)
        if search is self.state.search:
            return
        self.state.search = search
        self._notify(EVENT_SEARCH)

    def search_next(self) -> str | None:
        self.state.search = self.state.search.next()
        self._notify(EVENT_SEARCH)
        return self.state.search.highlighted_path

    def search_previous(self) -> str | None:
        self.state.search = self.state.search.previous()
        self._notify(EVENT_SEARCH)
        return self.state.search.highlighted_path

    def activate_search_match(self) -> None:
        """Toggle the highlighted match as if its checkbox were clicked."""
        self._set_selected(self.state.search.activate(self.state.selected))

    def clear_search(self) -> None:
        if not self.state.search.term:
            return
        self.state.search = self.state.search.cleared()
        self._notify(EVENT_SEARCH)

    def visible_paths(self) -> list[str]:
        return _visible_paths(self.state.tree, self.state.search.term)

    def effective_expanded(self) -> frozenset[str]:
        return _effective_expanded(self.state.tree, self.state.expanded, self.state.search.term)

    def visible_rows(self) -> list[TreeRow]:
        rows, _render_expanded = build_visible_rows(
            self.state.tree,
            self.state.expanded,
            self.state.search.term,
        )
        return rows

    # Configuration settings

    def select_configuration(self, configuration_id: str) -> OperationResult:
        """Switch configuration: load its settings and restart monitoring."""
        state = self.state
        if self._monitor is not None and self._monitor.active:
            self.stop_monitoring()
        state.configuration_id = configuration_id
        if self._settings_store is not None:
            state.settings = self._settings_store.load_aggregation_settings(configuration_id)
        self._output_changed(EVENT_SETTINGS)
        if self._monitor is not None and state.tree is not None:
            return self.start_monitoring()
        return OperationResult.success()

    def _update_settings(self, settings: AggregationSettings) -> OperationResult:
        state = self.state
        if settings == state.settings:
            return OperationResult.success()
        state.settings = settings
        self._output_changed(EVENT_SETTINGS)
        if self._settings_store is None or not self._autosave_settings or not state.configuration_id:
            return OperationResult.success()
        try:
            self._settings_store.save_aggregation_settings(state.configuration_id, settings)
        except SettingsStoreError as exc:
            return self._fail("Saving settings failed", exc)
        return OperationResult.success()

    def set_format(self, fmt: str) -> OperationResult:
        if fmt not in OUTPUT_FORMATS:
            return self._fail("Invalid format", f"{fmt!r} (expected one of {', '.join(OUTPUT_FORMATS)})")
        return self._update_settings(replace(self.state.settings, format=fmt))

    def set_prepend_tree(self, prepend_tree: bool) -> OperationResult:
        return self._update_settings(replace(self.state.settings, prepend_tree=bool(prepend_tree)))

    def set_compression(self, compress: bool, remove_comments: bool | None = None) -> OperationResult:
        """Toggle body elision; ``remove_comments`` only applies while compressing."""
        settings = replace(self.state.settings, compress=bool(compress))
        if remove_comments is not None:
            settings = replace(settings, remove_comments=bool(remove_comments))
        return self._update_settings(settings)

    def set_prompt(
        self,
        *,
        preamble: str | None = None,
        query: str | None = None,
        preamble_tag: str | None = None,
        query_tag: str | None = None,
    ) -> OperationResult:
        """Update the text wrapped around the aggregated output; ``None`` keeps a field."""
        changes = {
            key: value
            for key, value in (
                ("preamble", preamble),
                ("query", query),
                ("preamble_tag", preamble_tag),
                ("query_tag", query_tag),
            )
            if value is not None
        }
        return self._update_settings(replace(self.state.settings, **changes))

    def prompt_presets(self) -> dict[str, PromptPreset]:
        if self._settings_store is None:
            return {}
        return self._settings_store.load_prompt_presets()

    def save_prompt_preset(self, name: str) -> OperationResult:
        """Store the current preamble, query and tags under ``name``."""
        if self._settings_store is None:
            return self._fail("Saving preset failed", "no settings store available")
        settings = self.state.settings
        preset = PromptPreset(
            name=name,
            preamble=settings.preamble,
            query=settings.query,
            preamble_tag=settings.preamble_tag,
            query_tag=settings.query_tag,
        )
        try:
            self._settings_store.save_prompt_preset(preset)
        except SettingsStoreError as exc:
            return self._fail("Saving preset failed", exc)
        return OperationResult.success()

    def apply_prompt_preset(self, name: str) -> OperationResult:
        preset = self.prompt_presets().get(name)
        if preset is None:
            return self._fail("Unknown preset", repr(name))
        return self.set_prompt(
            preamble=preset.preamble,
            query=preset.query,
            preamble_tag=preset.preamble_tag,
            query_tag=preset.query_tag,
        )

    # Staleness

    def start_monitoring(self) -> OperationResult:
        state = self.state
        if self._monitor is None:
            return self._fail("Monitoring failed", "no file monitor available")
        if not state.configuration_id:
            return self._fail("Monitoring failed", "no configuration selected")
        try:
            self._monitor.start(state.configuration_id, monitorable_files(state.tree))
        except MonitorError as exc:
            return self._fail("Monitoring failed", exc)
        logger.info(
            "Monitoring %d file(s) for %s",
            len(self._monitor.watched_paths()),
            state.configuration_id,
        )
        return OperationResult.success()

    def stop_monitoring(self) -> OperationResult:
        if self._monitor is None:
            return OperationResult.success()
        try:
            self._monitor.stop()
        except MonitorError as exc:
            return self._fail("Stopping monitoring failed", exc)
        return OperationResult.success()

    def on_stale_update(self, paths: Iterable[str]) -> None:
        """Replace the stale set with ``paths`` from the latest monitor check."""
        stale = self._staleness.apply_update(paths)
        if stale == self.state.stale:
            return
        self.state.stale = stale
        self._notify(EVENT_STALE)

    # Aggregation

    def _commit(self, result: AggregationResult) -> AggregationResult:
        self.state.aggregation = result
        self.state.aggregation_pending = False
        if result.error:
            self.state.last_error = result.error
        self._notify(EVENT_AGGREGATION)
        return result

    def request_aggregation(self) -> int:
        """Schedule background aggregation for the current inputs; returns its generation."""
        state = self.state
        state.aggregation_pending = True
        return self._scheduler.schedule(
            generation=state.generation,
            tree=state.tree,
            selection=state.selected,
            settings=state.settings,
        )

    def poll_aggregation(self) -> AggregationResult | None:
        """Commit the drained result for the current generation, dropping older ones."""
        committed: AggregationResult | None = None
        for result in self._scheduler.drain_results():
            if result.generation != self.state.generation:
                logger.debug(
                    "Discarding aggregation for generation %d (current %d)",
                    result.generation,
                    self.state.generation,
                )
                continue
            committed = self._commit(result)
        return committed

    def aggregate_now(self) -> AggregationResult:
        state = self.state
        result = self._run_aggregation(
            state.tree,
            state.selected,
            state.settings,
            generation=state.generation,
        )
        return self._commit(result)

    def current_aggregation(self) -> AggregationResult:
        """Return the committed result for the current inputs, aggregating if needed."""
        result = self.state.aggregation
        if result is not None and result.generation == self.state.generation:
            return result
        return self.aggregate_now()

    def copy_to_clipboard(self) -> OperationResult:
        text = self.current_aggregation().text
        error = self._copy_text(text)
        if error:
            return self._fail("Copy failed", error)
        return OperationResult.success()

    # Stats

    def stats(self) -> TreeStats:
        return calculate_tree_stats(self.state.tree)

    def selected_stats(self) -> TreeStats:
        """Files, lines and tokens counted over the selected files only."""
        files = lines = tokens = 0
        for node in iter_preorder(self.state.tree):
            if node.is_dir or node.path not in self.state.selected:
                continue
            files += 1
            lines += node.lines
            tokens += node.tokens
        return TreeStats(files=files, folders=0, lines=lines, tokens=tokens)


__all__ = [
    "ContextSession",
    "ChangeListener",
    "EVENT_TREE",
    "EVENT_SELECTION",
    "EVENT_EXPANSION",
    "EVENT_SEARCH",
    "EVENT_SETTINGS",
    "EVENT_STALE",
    "EVENT_AGGREGATION",
    "EVENT_ERROR",
]
