"""
Tests for tools/scheduler.py — session-scoped timers.

Uses short intervals (0.02-0.1s) for fast tests. All tests are async.
"""

import asyncio

import pytest

from tools.scheduler import SessionScheduler


class TestEvery:

    def test_runs_immediately_then_repeats(self):
        ticks = []

        async def tick():
            ticks.append(1)

        async def run():
            scheduler = SessionScheduler()
            scheduler.every(0.05, tick)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            assert len(ticks) == 1
            await asyncio.sleep(0.12)
            assert len(ticks) >= 2
            await scheduler.cancel_all()

        asyncio.run(run())

    def test_without_immediate_run(self):
        ticks = []

        async def tick():
            ticks.append(1)

        async def run():
            scheduler = SessionScheduler()
            scheduler.every(0.2, tick, run_immediately=False)
            await asyncio.sleep(0.05)
            assert ticks == []
            await scheduler.cancel_all()

        asyncio.run(run())

    def test_failing_callback_keeps_schedule(self):
        calls = []

        async def flaky():
            calls.append(1)
            raise ValueError("boom")

        async def run():
            scheduler = SessionScheduler()
            scheduler.every(0.02, flaky)
            await asyncio.sleep(0.1)
            assert len(calls) >= 2
            await scheduler.cancel_all()

        asyncio.run(run())


class TestLater:

    def test_fires_once(self):
        fired = []

        async def cb():
            fired.append(1)

        async def run():
            scheduler = SessionScheduler()
            handle = scheduler.later(0.02, cb)
            assert handle.active is True
            await asyncio.sleep(0.1)
            assert fired == [1]
            assert handle.active is False

        asyncio.run(run())

    def test_cancelled_handle_never_fires(self):
        fired = []

        async def cb():
            fired.append(1)

        async def run():
            scheduler = SessionScheduler()
            handle = scheduler.later(0.05, cb)
            handle.cancel()
            handle.cancel()
            await asyncio.sleep(0.1)
            assert fired == []

        asyncio.run(run())


class TestCancelAll:

    def test_cancels_everything(self):
        fired = []

        async def cb():
            fired.append(1)

        async def run():
            scheduler = SessionScheduler()
            scheduler.every(0.03, cb, run_immediately=False)
            scheduler.later(0.03, cb)
            assert scheduler.active_count == 2
            await scheduler.cancel_all()
            assert scheduler.active_count == 0
            assert scheduler.closed is True
            await asyncio.sleep(0.08)
            assert fired == []

        asyncio.run(run())

    def test_refuses_new_tasks_after_shutdown(self):
        async def cb():
            pass

        async def run():
            scheduler = SessionScheduler()
            await scheduler.cancel_all()
            with pytest.raises(RuntimeError):
                scheduler.later(1, cb)

        asyncio.run(run())
