"""Unit tests for event-loop repeating timers."""

import asyncio

import pytest

from speechcoach.audio import LoopScheduler, RepeatingTimer


@pytest.mark.unit
class TestRepeatingTimer:

    @pytest.mark.asyncio
    async def test_fires_repeatedly_until_cancelled(self):
        calls = []
        timer = LoopScheduler().call_every(0.01, lambda: calls.append(1))

        await asyncio.sleep(0.1)
        timer.cancel()
        fired = len(calls)
        await asyncio.sleep(0.05)

        assert fired >= 3
        assert len(calls) == fired
        assert not timer.active

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self):
        timer = RepeatingTimer(asyncio.get_running_loop(), 0.01, lambda: None)

        assert timer.active
        timer.cancel()
        timer.cancel()

        assert not timer.active

    @pytest.mark.asyncio
    async def test_callback_can_cancel_its_own_timer(self):
        calls = []
        holder = {}

        def callback():
            calls.append(1)
            holder["timer"].cancel()

        holder["timer"] = LoopScheduler().call_every(0.01, callback)
        await asyncio.sleep(0.08)

        assert calls == [1]

    @pytest.mark.asyncio
    async def test_explicit_loop(self):
        loop = asyncio.get_running_loop()
        event = asyncio.Event()

        timer = LoopScheduler(loop).call_every(0.01, event.set)
        await asyncio.wait_for(event.wait(), timeout=1.0)
        timer.cancel()

        assert event.is_set()
