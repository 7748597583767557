"""Hypothesis strategies for property-based testing of lazyfx computations."""

from hypothesis import strategies as st

from lazyfx import Err, Nothing, Ok, Some

integers = st.integers(min_value=-10_000, max_value=10_000)

exceptions = st.sampled_from(
    [
        ValueError('test'),
        TypeError('test'),
        RuntimeError('test'),
    ]
)

results = st.one_of(integers.map(Ok), exceptions.map(Err))

optional_results = st.one_of(integers.map(Some), st.just(Nothing), exceptions.map(Err))

# Pure functions int -> int used to build Kleisli arrows in the monad-law tests
int_functions = st.sampled_from(
    [
        lambda x: x + 1,
        lambda x: x * 2,
        lambda x: -x,
        lambda x: x // 3,
    ]
)
