"""asyncstate: async-refreshed component state with channel broadcast."""

from importlib.metadata import version as _version

__version__ = _version("asyncstate")

from asyncstate.errors import (
    AsyncStateError,
    ChannelOwnershipError,
    IncompleteStateError,
    LifecycleError,
    StateContractError,
    UnknownFieldError,
)
from asyncstate.state import State, merge
from asyncstate.stream import EventStream
from asyncstate.unit import StatefulUnit, set_scheduler
from asyncstate.channel import Channel
from asyncstate.consumer import Consumer, consume
from asyncstate.provider import StatefulProvider
from asyncstate.transaction import transaction
# textual NOT auto-imported — opt-in only

__all__ = [
    "State",
    "merge",
    "StatefulUnit",
    "StatefulProvider",
    "set_scheduler",
    "Channel",
    "Consumer",
    "consume",
    "EventStream",
    "transaction",
    "AsyncStateError",
    "StateContractError",
    "IncompleteStateError",
    "UnknownFieldError",
    "LifecycleError",
    "ChannelOwnershipError",
]
