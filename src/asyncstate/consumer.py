"""Consumers — read relations on a Channel.

A Consumer reads a channel immediately, passes the value to its
``children`` function and keeps the result. Whenever the channel's owner
writes a new value, the consumer re-evaluates. Consumers never write.

The channel only holds consumers weakly: keep a reference to the
Consumer (or dispose() it) for as long as it should stay subscribed.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from asyncstate.channel import Channel

T = TypeVar("T")


def _identity(value):
    return value


class Consumer(Generic[T]):
    """A read-only subscription that re-runs ``children`` when its channel changes."""

    def __init__(self, channel: Channel[T], children: Callable[[T | None], Any] | None = None) -> None:
        self._channel = channel
        self._children = children or _identity
        self._disposed = False
        self._value: T | None = None
        self._output: Any = None
        self._runs = 0
        channel.subscribe(self)
        self._run()

    @property
    def value(self) -> T | None:
        """The channel value seen by the most recent evaluation."""
        return self._value

    @property
    def output(self) -> Any:
        """What ``children`` returned for the most recent value."""
        return self._output

    @property
    def runs(self) -> int:
        return self._runs

    @property
    def disposed(self) -> bool:
        return self._disposed

    def read(self) -> T | None:
        """Current channel value, which may be newer than ``value`` inside a transaction."""
        return self._channel.get()

    def _run(self) -> None:
        if self._disposed:
            return
        self._value = self._channel.get()
        self._runs += 1
        self._output = self._children(self._value)

    def dispose(self) -> None:
        """Stop consuming. Disconnects from the channel."""
        self._disposed = True
        self._channel.unsubscribe(self)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"Consumer({self._channel!r}, {state})"


def consume(channel: Channel[T], children: Callable[[T | None], Any] | None = None) -> Consumer[T]:
    """Attach a consumer to channel and evaluate it immediately.

    Returns the Consumer (call .dispose() to stop).

    Usage:
        status = Channel(name="status")
        seen = []

        c = consume(status, lambda state: seen.append(state))
        # seen == [None]: ran immediately with the channel default

        # ... the owning provider publishes State({"n": 1}, loading=True)
        # seen == [None, State({'n': 1}, loading=True)]

        c.dispose()
    """
    return Consumer(channel, children)
