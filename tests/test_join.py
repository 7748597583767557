"""Tests for joining two computations on a key."""

import asyncio
import time

import pytest

from lazyfx import InvalidJoinError, MissingHandlerError, Nothing, Ok, Some, TryAsync, TryOptionAsync


class TestJoin:
    @pytest.mark.asyncio
    async def test_matching_keys_project(self):
        users = TryAsync.succ({'id': 1, 'name': 'ada'})
        orders = TryAsync.succ({'user_id': 1, 'total': 30})
        joined = users.join(
            orders,
            lambda u: u['id'],
            lambda o: o['user_id'],
            lambda u, o: (u['name'], o['total']),
        )
        assert await joined == Ok(('ada', 30))

    @pytest.mark.asyncio
    async def test_key_mismatch_is_failure(self, captured_errors):
        joined = TryAsync.succ(1).join(TryAsync.succ(2), lambda x: x, lambda y: y, lambda x, y: (x, y))
        result = await joined
        assert isinstance(result.error, InvalidJoinError)
        assert result.error.outer_key == '1'
        assert result.error.inner_key == '2'
        assert captured_errors == [result.error]

    @pytest.mark.asyncio
    async def test_runs_both_sides_concurrently(self):
        async def slow(value):
            await asyncio.sleep(0.05)
            return value

        outer = TryAsync.of(lambda: slow(1))
        inner = TryAsync.of(lambda: slow(1))
        start = time.perf_counter()
        result = await outer.join(inner, lambda x: x, lambda y: y, lambda x, y: x + y)
        assert result == Ok(2)
        assert time.perf_counter() - start < 0.09

    @pytest.mark.asyncio
    async def test_outer_failure_short_circuits(self, counter):
        outer_exc = ValueError('outer')
        joined = TryAsync.fail(outer_exc).join(
            TryAsync.fail(ValueError('inner')),
            counter.tick,
            counter.tick,
            lambda x, y: (x, y),
        )
        result = await joined
        assert result.error is outer_exc
        assert counter.calls == 0

    @pytest.mark.asyncio
    async def test_inner_failure_short_circuits(self):
        inner_exc = ValueError('inner')
        result = await TryAsync.succ(1).join(TryAsync.fail(inner_exc), lambda x: x, lambda y: y, lambda x, y: x)
        assert result.error is inner_exc

    @pytest.mark.asyncio
    async def test_optional_join(self):
        joined = TryOptionAsync.some(1).join(TryOptionAsync.some(1), lambda x: x, lambda y: y, lambda x, y: x + y)
        assert await joined == Some(2)
        missing = TryOptionAsync.some(1).join(TryOptionAsync.none(), lambda x: x, lambda y: y, lambda x, y: x)
        assert await missing is Nothing

    def test_missing_key_function_raises_eagerly(self):
        with pytest.raises(MissingHandlerError):
            TryAsync.succ(1).join(TryAsync.succ(1), None, lambda y: y, lambda x, y: x)
