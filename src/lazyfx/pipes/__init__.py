"""Producer streams, effects and the `merge` fan-in scheduler."""

from __future__ import annotations

from lazyfx.pipes.producer import Consumer, Effect, MergeState, Producer, Queue, merge, merge_all
from lazyfx.pipes.runtime import CancellationToken, Runtime, WakeSignal

__all__ = [
    'CancellationToken',
    'Consumer',
    'Effect',
    'MergeState',
    'Producer',
    'Queue',
    'Runtime',
    'WakeSignal',
    'merge',
    'merge_all',
]
