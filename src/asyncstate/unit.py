"""Stateful units — async state refreshed until a terminal condition.

A StatefulUnit holds one State. activate() publishes the seed and runs the
refresh loop: the update function is called with the current snapshot,
contributes patches through ``state.update_state(...)``, and reports
whether it is done. Each completed step merges the queued patches,
publishes the new State and emits the render output on ``renders``.

deactivate() may happen at any await point. The active flag is checked
before a step starts and again after the update function resumes, so a
torn-down unit never mutates its state or notifies anyone.

Thread safety: call set_scheduler() once from the event-loop thread. After
that, update_state() from another thread is marshaled through it.
"""

from __future__ import annotations

import inspect
import logging
import threading
from typing import Any, Awaitable, Callable, Generic, Iterable, Mapping, TypeVar

from asyncstate.errors import IncompleteStateError, LifecycleError
from asyncstate.state import Patch, State, check_patch, merge
from asyncstate.stream import EventStream

T = TypeVar("T", bound=Mapping[str, Any])

UpdateFn = Callable[[State], "bool | Awaitable[bool]"]
RenderFn = Callable[[State], Any]

logger = logging.getLogger("asyncstate.unit")

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread update_state() calls.

    Call once from the event-loop thread:
        asyncstate.set_scheduler(loop.call_soon_threadsafe)

    After this, update_state() from any other thread is marshaled. Calls on
    the scheduler thread stay synchronous. Pass None to clear.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


class StatefulUnit(Generic[T]):
    """Owns one State and drives it from loading to a terminal state."""

    def __init__(
        self,
        initial_state: T,
        update: UpdateFn | None = None,
        render: RenderFn | None = None,
        *,
        required: Iterable[str] = (),
    ) -> None:
        if not isinstance(initial_state, Mapping):
            raise IncompleteStateError([f"<{type(initial_state).__name__} is not a mapping>"])
        missing = [key for key in required if key not in initial_state]
        if missing:
            raise IncompleteStateError(missing)

        self._state: State[T] = State(initial_state, loading=True, update_state=self.update_state)
        self._update = update
        self._render = render
        self._pending: list[Patch] = []
        self._activated = False
        self._deactivated = False
        self._active = False
        self._in_flight = False
        self._publishing = False
        self._running = False
        self._done = False
        self._iteration = 0
        self._output: Any = None
        self.renders: EventStream[Any] = EventStream()

    # --- Read-only views ---

    @property
    def state(self) -> State[T]:
        return self._state

    @property
    def active(self) -> bool:
        return self._active

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def done(self) -> bool:
        """True once the update function reported completion."""
        return self._done

    @property
    def running(self) -> bool:
        return self._running

    @property
    def iteration(self) -> int:
        """Number of refresh steps that were published."""
        return self._iteration

    @property
    def output(self) -> Any:
        """Render output of the most recent publish."""
        return self._output

    # --- Lifecycle ---

    async def activate(self) -> None:
        """Go live: publish the seed state, then run the refresh loop.

        Failures raised by the update function propagate from here.
        """
        if self._deactivated:
            logger.debug("Ignoring activate() on deactivated %r", self)
            return
        if self._activated:
            raise LifecycleError(f"{self!r} was already activated")
        self._activated = True
        self._active = True
        logger.debug("Activated %r", self)

        loading = self._update is not None
        self._done = not loading
        self._publish(self._drain(self._state, loading=loading))

        # A render subscriber may have torn the unit down already.
        if self._update is not None and self._active:
            await self.run()

    def deactivate(self) -> None:
        """Tear down. Suspended steps discard their results when they resume."""
        if self._deactivated:
            return
        self._deactivated = True
        self._active = False
        self._pending.clear()
        self.renders.dispose()
        logger.debug("Deactivated %r", self)

    async def run(self) -> None:
        """Run the refresh loop until done, deactivated, or the update fails.

        activate() calls this. A host may call it again to restart the loop
        after an update failure.
        """
        if self._update is None:
            raise LifecycleError(f"{self!r} has no update function")
        if self._running:
            raise LifecycleError(f"refresh loop of {self!r} is already running")
        self._running = True
        try:
            while self._active and not self._done:
                await self._refresh()
        finally:
            self._running = False
        logger.debug("Refresh loop of %r halted after %d steps", self, self._iteration)

    async def _refresh(self) -> None:
        """One refresh step: call the update function, then merge and publish."""
        if not self._active:
            return

        self._in_flight = True
        try:
            result = self._update(self._state)
            if inspect.isawaitable(result):
                result = await result
        finally:
            self._in_flight = False

        if not self._active:
            logger.debug("Discarding refresh result of deactivated %r", self)
            return

        done = bool(result)
        state = self._drain(self._state, loading=not done)
        self._done = done
        self._iteration += 1
        self._publish(state)

    # --- Patches ---

    def update_state(self, patch: Patch | None = None, **fields: Any) -> None:
        """Merge a partial update into the state.

        Queued before activation, while a refresh step is suspended, and
        while a publish is being rendered; applied and published immediately
        otherwise. No-op once deactivated.
        """
        patch = {**(patch or {}), **fields}
        if self._deactivated:
            logger.debug("Ignoring update_state() on deactivated %r", self)
            return
        check_patch(self._state, patch)
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda p=patch: self._apply(p))
        else:
            self._apply(patch)

    def _apply(self, patch: Patch) -> None:
        """Queue or publish a patch. Always runs on the scheduler thread."""
        if self._deactivated:
            return
        self._pending.append(patch)
        if self._active and not self._in_flight and not self._publishing:
            self._publish(self._drain(self._state))

    def _drain(self, state: State[T], *, loading: bool | None = None) -> State[T]:
        """Fold queued patches into state, in the order they were made."""
        pending, self._pending = self._pending, []
        for patch in pending:
            state = merge(state, patch)
        if loading is not None and loading != state.loading:
            state = merge(state, {}, loading=loading)
        return state

    # --- Publish / render ---

    def render(self) -> Any:
        """Project the current state through the render function (default: the state)."""
        if self._render is None:
            return self._state
        return self._render(self._state)

    def _publish(self, state: State[T]) -> None:
        """Commit a new state and emit its render output. Runs only while active.

        Patches made by render subscribers are queued and published after
        every subscriber has seen the current state, in order.
        """
        if not self._active:
            return
        self._publishing = True
        try:
            while True:
                self._state = state
                self._output = self.render()
                self._emit()
                if not (self._active and self._pending):
                    break
                state = self._drain(self._state)
        finally:
            self._publishing = False

    def _emit(self) -> None:
        """Notify the host of the committed state. Runs once per publish."""
        self.renders.emit(self._output)

    def __repr__(self) -> str:
        phase = "active" if self._active else ("deactivated" if self._deactivated else "idle")
        return f"{type(self).__name__}({dict(self._state.value)!r}, {phase})"
