"""Exception hierarchy for asyncstate."""

from __future__ import annotations


class AsyncStateError(Exception):
    """Base exception for all asyncstate errors."""


class StateContractError(AsyncStateError, ValueError):
    """State shape does not satisfy the unit's contract."""


class IncompleteStateError(StateContractError):
    """Initial state is missing required fields."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"initial state is missing required fields: {', '.join(missing)}")


class UnknownFieldError(StateContractError):
    """A patch names fields the state does not have."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"patch names unknown fields: {', '.join(fields)}")


class LifecycleError(AsyncStateError, RuntimeError):
    """Operation is not valid in the unit's current lifecycle phase."""


class ChannelOwnershipError(AsyncStateError, RuntimeError):
    """A second writer tried to claim or write a channel."""
