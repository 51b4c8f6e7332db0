"""Providers — stateful units that broadcast their state on a Channel.

A StatefulProvider behaves exactly like a StatefulUnit and additionally
writes every published State into its channel, where any number of
Consumers can read it. The provider is the channel's only writer.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, TypeVar

from asyncstate.channel import Channel
from asyncstate.state import State
from asyncstate.transaction import transaction
from asyncstate.unit import RenderFn, StatefulUnit, UpdateFn

T = TypeVar("T", bound=Mapping[str, Any])


class StatefulProvider(StatefulUnit[T]):
    """A StatefulUnit whose published states are written to a channel."""

    def __init__(
        self,
        initial_state: T,
        channel: Channel[State[T]],
        update: UpdateFn | None = None,
        render: RenderFn | None = None,
        *,
        required: Iterable[str] = (),
    ) -> None:
        super().__init__(initial_state, update, render, required=required)
        channel.claim(self)
        self._channel = channel

    @property
    def channel(self) -> Channel[State[T]]:
        return self._channel

    def deactivate(self) -> None:
        super().deactivate()
        self._channel.release(self)

    def _publish(self, state: State[T]) -> None:
        """Publish, then let consumers re-evaluate once on the latest state."""
        with transaction():
            super()._publish(state)

    def _emit(self) -> None:
        """Render locally, then write the committed state to the channel."""
        super()._emit()
        # Local render subscribers may have deactivated us.
        if self.active:
            self._channel.write(self, self.state)
