"""Background aggregation worker with latest-request-wins scheduling."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue

from ..tree_model import TreeNode
from .pipeline import AggregationResult, AggregationSettings, aggregate

logger = logging.getLogger(__name__)

AGGREGATION_FAILED_LABEL = "Aggregation failed"


@dataclass(frozen=True)
class AggregationRequest:
    """One aggregation job stamped with the input generation it was built from."""

    generation: int
    tree: TreeNode | None
    selection: frozenset[str]
    settings: AggregationSettings


class AggregationScheduler:
    """Single-threaded latest-request-wins aggregation scheduler.

    Scheduling while a job runs replaces any queued job, so at most one
    superseded result can still arrive. Callers compare
    ``AggregationResult.generation`` with their current generation before
    committing a drained result.
    """

    def __init__(self, run_aggregation: Callable[..., AggregationResult] = aggregate) -> None:
        self._run_aggregation = run_aggregation
        self._lock = threading.Lock()
        self._pending: AggregationRequest | None = None
        self._running = False
        self._idle = threading.Event()
        self._idle.set()
        self._results: Queue[AggregationResult] = Queue()

    def _worker(self) -> None:
        while True:
            with self._lock:
                request = self._pending
                self._pending = None
                if request is None:
                    self._running = False
                    self._idle.set()
                    return

            try:
                result = self._run_aggregation(
                    request.tree,
                    request.selection,
                    request.settings,
                    generation=request.generation,
                )
            except Exception as exc:
                logger.exception("Aggregation for generation %d failed", request.generation)
                result = AggregationResult(
                    generation=request.generation,
                    errors=(f"{AGGREGATION_FAILED_LABEL}: {exc}",),
                )
            self._results.put(result)

    def schedule(
        self,
        *,
        generation: int,
        tree: TreeNode | None,
        selection: frozenset[str],
        settings: AggregationSettings,
    ) -> int:
        """Queue or replace pending work and return its generation."""
        with self._lock:
            self._pending = AggregationRequest(
                generation=generation,
                tree=tree,
                selection=frozenset(selection),
                settings=settings,
            )
            if self._running:
                return generation
            self._running = True
            self._idle.clear()

        worker = threading.Thread(
            target=self._worker,
            name="contextbuilder-aggregate",
            daemon=True,
        )
        worker.start()
        return generation

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until no job is queued or running; return ``False`` on timeout."""
        return self._idle.wait(timeout)

    def drain_results(self) -> list[AggregationResult]:
        """Drain all completed results in completion order."""
        out: list[AggregationResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out


__all__ = ["AGGREGATION_FAILED_LABEL", "AggregationRequest", "AggregationScheduler"]
