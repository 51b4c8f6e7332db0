"""Textual integration for asyncstate. Opt-in — requires textual.

Textual is the host runtime here: widget mount/unmount drive
activate()/deactivate(), and render outputs are pushed into widgets.
Guard + NoMatches + thread-marshal are enforced in this module, not at
callsites. _paused_apps has a single owner (this module); an id is present
exactly while inside a pause() context.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches
from textual.widgets import Static

from asyncstate.consumer import consume as _consume
from asyncstate.state import State

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, effect_fn):
    _main = threading.get_ident()

    def _guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value):
        try:
            effect_fn(value)
        except NoMatches:
            pass

    return _guarded


def bind(app, unit, effect_fn):
    """Feed a unit's render outputs to effect_fn, safely.

    Guards against firing during pause/not-running, catches NoMatches
    from widget queries, and marshals cross-thread calls via call_from_thread.
    Returns a function that unsubscribes.
    """
    return unit.renders.subscribe(_guard(app, effect_fn))


def consume(app, channel, effect_fn):
    """consume() that safely bridges a channel to Textual widgets.

    Same guarding as bind(). Returns the Consumer (call .dispose() to stop).
    """
    return _consume(channel, _guard(app, effect_fn))


class StatefulStatic(Static):
    """A Static that shows a unit's render output and follows its lifecycle.

    Mounting activates the unit in a worker; unmounting deactivates it.
    Update failures surface through Textual's worker error handling. The
    unit's render function should return something Static.update() accepts;
    without one the State is shown as text.
    """

    def __init__(self, unit, **kwargs) -> None:
        super().__init__(**kwargs)
        self.unit = unit
        self._unbind = None

    def on_mount(self) -> None:
        self._unbind = bind(self.app, self.unit, self._show)
        self.run_worker(self.unit.activate(), exclusive=True, group="asyncstate")

    def on_unmount(self) -> None:
        self.unit.deactivate()
        if self._unbind is not None:
            self._unbind()
            self._unbind = None

    def _show(self, output) -> None:
        if isinstance(output, State):
            output = repr(output)
        self.update(output)
