"""Tests for the background aggregation scheduler."""

from __future__ import annotations

import threading
import time
import unittest

from contextbuilder.aggregate import AggregationResult, AggregationScheduler, AggregationSettings


def _wait_for_results(
    scheduler: AggregationScheduler,
    *,
    expected_count: int,
    timeout_seconds: float = 2.0,
) -> list[AggregationResult]:
    deadline = time.monotonic() + timeout_seconds
    out: list[AggregationResult] = []
    while time.monotonic() < deadline:
        out.extend(scheduler.drain_results())
        if len(out) >= expected_count:
            break
        time.sleep(0.01)
    return out


class AggregationSchedulerTests(unittest.TestCase):
    def test_schedule_runs_in_background_and_stamps_generation(self) -> None:
        calls: list[tuple[frozenset[str], str]] = []

        def run(tree, selection, settings, *, generation):
            calls.append((selection, settings.format))
            return AggregationResult(text="out", generation=generation)

        scheduler = AggregationScheduler(run)
        returned = scheduler.schedule(
            generation=4,
            tree=None,
            selection=frozenset({"/a"}),
            settings=AggregationSettings(format="xml"),
        )

        results = _wait_for_results(scheduler, expected_count=1)
        self.assertEqual(returned, 4)
        self.assertEqual(calls, [(frozenset({"/a"}), "xml")])
        self.assertEqual([result.generation for result in results], [4])

    def test_pending_requests_collapse_to_latest(self) -> None:
        generations: list[int] = []
        first_started = threading.Event()
        allow_first_finish = threading.Event()

        def run(tree, selection, settings, *, generation):
            if generation == 1:
                first_started.set()
                allow_first_finish.wait(timeout=1.0)
            generations.append(generation)
            return AggregationResult(generation=generation)

        scheduler = AggregationScheduler(run)
        settings = AggregationSettings()
        scheduler.schedule(generation=1, tree=None, selection=frozenset(), settings=settings)
        self.assertTrue(first_started.wait(timeout=1.0))
        scheduler.schedule(generation=2, tree=None, selection=frozenset(), settings=settings)
        scheduler.schedule(generation=3, tree=None, selection=frozenset(), settings=settings)
        allow_first_finish.set()

        self.assertTrue(scheduler.wait_until_idle(timeout=2.0))
        results = scheduler.drain_results()
        self.assertEqual(generations, [1, 3])
        self.assertEqual([result.generation for result in results], [1, 3])

    def test_failed_job_reports_error_result_and_worker_continues(self) -> None:
        def run(tree, selection, settings, *, generation):
            if generation == 1:
                raise RuntimeError("boom")
            return AggregationResult(text="ok", generation=generation)

        scheduler = AggregationScheduler(run)
        settings = AggregationSettings()
        scheduler.schedule(generation=1, tree=None, selection=frozenset(), settings=settings)
        self.assertTrue(scheduler.wait_until_idle(timeout=2.0))
        scheduler.schedule(generation=2, tree=None, selection=frozenset(), settings=settings)
        self.assertTrue(scheduler.wait_until_idle(timeout=2.0))

        failed, succeeded = scheduler.drain_results()
        self.assertEqual(failed.generation, 1)
        self.assertEqual(failed.text, "")
        self.assertEqual(failed.errors, ("Aggregation failed: boom",))
        self.assertEqual((succeeded.generation, succeeded.text), (2, "ok"))


if __name__ == "__main__":
    unittest.main()
