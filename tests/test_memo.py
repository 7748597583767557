"""Tests for memoization of deferred computations."""

import asyncio

import pytest

from lazyfx import Nothing, Ok, Some, TryAsync, TryOptionAsync, memo
from lazyfx.memo import MemoCell, memoize


class TestMemoCell:
    def test_fill_rejects_err(self):
        from lazyfx import Err

        cell = MemoCell()
        assert cell.fill(Err(ValueError())) is False
        assert cell.has_run is False

    def test_fill_accepts_nothing(self):
        cell = MemoCell()
        assert cell.fill(Nothing) is True
        assert cell.value is Nothing


class TestMemo:
    @pytest.mark.asyncio
    async def test_second_call_skips_wrapped_logic(self, counter):
        cached = TryAsync.of(lambda: counter.tick(42)).memo()
        first = await cached
        second = await cached
        assert first == second == Ok(42)
        assert second is first
        assert counter.calls == 1

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise ConnectionError('transient')
            return 'ok'

        cached = memo(TryAsync.of(flaky))
        assert (await cached).is_fail()
        assert await cached == Ok('ok')
        assert await cached == Ok('ok')
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_nothing_is_cached(self, counter):
        cached = TryOptionAsync.of(lambda: counter.tick(None)).memo()
        assert await cached is Nothing
        assert await cached is Nothing
        assert counter.calls == 1

    @pytest.mark.asyncio
    async def test_some_is_cached(self, counter):
        cached = TryOptionAsync.of(lambda: counter.tick('v')).memo()
        assert await cached == Some('v')
        assert await cached == Some('v')
        assert counter.calls == 1

    @pytest.mark.asyncio
    async def test_relaxed_mode_may_run_racing_first_calls(self, counter):
        """Racing first calls are not mutually exclusive by default."""

        async def slow():
            counter.tick()
            await asyncio.sleep(0.01)
            return 1

        cached = TryAsync.of(slow).memo()
        results = await asyncio.gather(cached.run(), cached.run(), cached.run())
        assert all(r == Ok(1) for r in results)
        assert counter.calls == 3
        await cached
        assert counter.calls == 3

    @pytest.mark.asyncio
    async def test_exclusive_mode_runs_once(self, counter):
        async def slow():
            counter.tick()
            await asyncio.sleep(0.01)
            return 1

        cached = TryAsync.of(slow).memo(exclusive=True)
        results = await asyncio.gather(cached.run(), cached.run(), cached.run())
        assert all(r == Ok(1) for r in results)
        assert counter.calls == 1

    @pytest.mark.asyncio
    async def test_cache_fill_is_logged(self, log_events):
        await TryAsync.succ(1).memo()
        assert any(e['event'] == 'memo.filled' for e in log_events)


class TestMemoize:
    @pytest.mark.asyncio
    async def test_plain_callable(self, counter):
        async def run():
            counter.tick()
            return Ok(1)

        cached = memoize(run)
        assert await cached() == Ok(1)
        assert await cached() == Ok(1)
        assert counter.calls == 1
