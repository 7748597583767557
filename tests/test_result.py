"""Tests for the result types and total projections."""

import pytest

from lazyfx import (
    BottomError,
    Err,
    InvalidJoinError,
    MissingHandlerError,
    Nothing,
    NothingType,
    Ok,
    Some,
    match_optional,
    match_result,
)


class TestStatePredicates:
    """Every variant answers the same set of state questions."""

    @pytest.mark.parametrize(
        ('value', 'some', 'none', 'fail'),
        [
            (Ok(1), True, False, False),
            (Some(1), True, False, False),
            (Nothing, False, True, False),
            (Err(ValueError('x')), False, False, True),
        ],
    )
    def test_predicates(self, value, some, none, fail):
        assert value.is_some() is some
        assert value.is_none() is none
        assert value.is_fail() is fail
        assert value.is_none_or_fail() is (none or fail)

    def test_ok_err_flags(self):
        assert Ok(1).is_ok() and not Ok(1).is_err()
        assert Err(ValueError()).is_err() and not Err(ValueError()).is_ok()

    def test_nothing_is_singleton_value(self):
        assert NothingType() == Nothing


class TestMap:
    def test_map_ok(self):
        assert Ok(2).map(lambda x: x * 10) == Ok(20)

    def test_map_some(self):
        assert Some('a').map(str.upper) == Some('A')

    def test_map_skips_failure_and_nothing(self):
        """The mapper is never invoked on a non-success state."""
        calls = []
        err = Err(ValueError('boom'))
        assert err.map(calls.append) is err
        assert Nothing.map(calls.append) is Nothing
        assert calls == []

    def test_map_err(self):
        err = Err(ValueError('boom')).map_err(lambda e: RuntimeError(str(e)))
        assert isinstance(err.error, RuntimeError)
        assert str(err.error) == 'boom'


class TestUnwrap:
    def test_unwrap_or(self):
        assert Ok(1).unwrap_or(0) == 1
        assert Err(ValueError()).unwrap_or(0) == 0
        assert Nothing.unwrap_or(0) == 0

    def test_err_unwrap_reraises(self):
        exc = ValueError('boom')
        with pytest.raises(ValueError, match='boom'):
            Err(exc).unwrap()

    def test_nothing_unwrap_raises_bottom(self):
        with pytest.raises(BottomError):
            Nothing.unwrap()

    def test_ok_to_option(self):
        assert Ok(3).ok() == Some(3)
        assert Err(ValueError()).ok() is Nothing

    def test_filter_option(self):
        assert Some(4).filter(lambda x: x > 3) == Some(4)
        assert Some(2).filter(lambda x: x > 3) is Nothing


class TestMatchResult:
    def test_ok_branch_only(self):
        seen = []
        out = match_result(Ok(5), lambda v: seen.append(('ok', v)) or 'ok', lambda e: seen.append(('err', e)))
        assert out == 'ok'
        assert seen == [('ok', 5)]

    def test_err_branch_only(self):
        exc = ValueError('boom')
        seen = []
        out = match_result(Err(exc), lambda v: seen.append(v), lambda e: seen.append(e) or 'err')
        assert out == 'err'
        assert seen == [exc]

    @pytest.mark.parametrize('missing', ['ok', 'err'])
    def test_none_handler_rejected(self, missing):
        handlers = {'ok': lambda v: v, 'err': lambda e: e}
        handlers[missing] = None
        with pytest.raises(MissingHandlerError) as info:
            match_result(Ok(1), **handlers)
        assert info.value.name == missing
        assert isinstance(info.value, TypeError)


class TestMatchOptional:
    @pytest.mark.parametrize(
        ('value', 'expected'),
        [
            (Some(1), 'some:1'),
            (Nothing, 'none'),
            (Err(ValueError('x')), 'fail:x'),
        ],
    )
    def test_exactly_one_branch(self, value, expected):
        out = match_optional(
            value,
            some=lambda v: f'some:{v}',
            none=lambda: 'none',
            fail=lambda e: f'fail:{e}',
        )
        assert out == expected

    def test_none_handler_rejected(self):
        with pytest.raises(MissingHandlerError):
            match_optional(Nothing, some=lambda v: v, none=None, fail=lambda e: e)


class TestErrors:
    def test_bottom_default_message(self):
        assert str(BottomError()) == 'Value is bottom'
        assert BottomError('gone').reason == 'gone'

    def test_invalid_join_message(self):
        err = InvalidJoinError('1', '2')
        assert (err.outer_key, err.inner_key) == ('1', '2')
        assert 'outer key 1 != inner key 2' in str(err)

    def test_missing_handler_is_type_error(self):
        err = MissingHandlerError('f')
        assert isinstance(err, TypeError)
        assert err.name == 'f'
