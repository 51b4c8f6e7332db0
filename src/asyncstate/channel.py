"""Channels — single-writer, many-reader holders of the latest state.

A Channel carries the State most recently published by its owning
provider. Consumers subscribe to it; when the owner writes a new value,
every subscribed consumer is scheduled for re-evaluation.

Only the owner may write. Writes are last-write-wins: there is no queue,
a consumer always sees the newest value on its next read.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, TypeVar
from weakref import WeakSet

from asyncstate.errors import ChannelOwnershipError
from asyncstate.transaction import schedule

if TYPE_CHECKING:
    from asyncstate.consumer import Consumer

T = TypeVar("T")

logger = logging.getLogger("asyncstate.channel")


class Channel(Generic[T]):
    """Latest-value broadcast channel with a single owning writer."""

    __slots__ = ("_name", "_value", "_version", "_owner", "_consumers")

    def __init__(self, default: T | None = None, *, name: str = "channel") -> None:
        self._name = name
        self._value = default
        self._version = 0
        self._owner: object | None = None
        # Consumers are not owned by the channel; dropped consumers fall out.
        self._consumers: WeakSet[Consumer] = WeakSet()

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> int:
        """Number of accepted writes. Increases by one per change."""
        return self._version

    @property
    def owner(self) -> object | None:
        return self._owner

    def get(self) -> T | None:
        return self._value

    def subscribe(self, consumer: Consumer) -> None:
        self._consumers.add(consumer)

    def unsubscribe(self, consumer: Consumer) -> None:
        self._consumers.discard(consumer)

    def claim(self, owner: object) -> None:
        """Make owner the channel's only writer."""
        if self._owner is not None and self._owner is not owner:
            raise ChannelOwnershipError(f"{self._name!r} already has a writer: {self._owner!r}")
        self._owner = owner
        logger.debug("Channel %r claimed by %r", self._name, owner)

    def release(self, owner: object) -> None:
        """Give up ownership. The last written value stays readable."""
        if self._owner is owner:
            self._owner = None
            logger.debug("Channel %r released by %r", self._name, owner)

    def write(self, writer: object, value: T) -> None:
        """Publish a new value. Only the owner may write; equal values are skipped."""
        if writer is not self._owner:
            raise ChannelOwnershipError(f"{writer!r} does not own {self._name!r}")
        old = self._value
        if old is not value and old != value:
            self._value = value
            self._version += 1
            for consumer in list(self._consumers):
                schedule(consumer)

    def __repr__(self) -> str:
        return f"Channel({self._name!r}, {self._value!r}, version={self._version})"
