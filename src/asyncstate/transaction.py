"""Transactions — batched consumer re-evaluation.

Channel writes normally re-run their consumers at once. Inside
`with transaction()` the consumers are collected instead and re-run once,
in the order they were first invalidated, when the outermost scope exits.
A provider publishes inside a transaction, so its consumers see the end
of a publish, never the middle of it.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from asyncstate.consumer import Consumer

# Open transaction scopes. When > 0, re-evaluation is deferred.
_depth: int = 0

# Invalidated consumers awaiting flush; a dict keeps first-invalidation order.
_pending: dict[Consumer, None] = {}


def schedule(consumer: Consumer) -> None:
    """Re-run a consumer now, or at the end of the open transaction."""
    if _depth > 0:
        _pending[consumer] = None
    else:
        consumer._run()


def _flush() -> None:
    while _pending:
        batch = list(_pending)
        _pending.clear()
        for consumer in batch:
            consumer._run()


@contextmanager
def transaction():
    """Context manager for batching channel writes.

    Usage:
        with transaction():
            status.write(owner, a)
            progress.write(owner, b)
            # consumers re-evaluate here, after both writes
    """
    global _depth
    _depth += 1
    try:
        yield
    finally:
        _depth -= 1
        if _depth == 0:
            _flush()
