"""State snapshots and the patch merge.

A State pairs the application value (a mapping from field name to value)
with the ``loading`` flag. Snapshots are immutable: every merge produces a
new State, and readers only ever see read-only views of the value.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Generic, Iterator, Mapping, TypeVar

from asyncstate.errors import StateContractError, UnknownFieldError

T = TypeVar("T", bound=Mapping[str, Any])

Patch = Mapping[str, Any]
UpdateStateHook = Callable[..., None]

RESERVED_FIELDS = frozenset({"loading", "update_state"})


@dataclass(frozen=True)
class State(Generic[T]):
    """Immutable snapshot of a unit's value plus loading metadata.

    ``update_state`` is the owning unit's patch hook. It rides along so an
    update function can contribute patches from the snapshot it was handed;
    it takes no part in equality.
    """

    value: Mapping[str, Any]
    loading: bool = True
    update_state: UpdateStateHook | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        reserved = sorted(RESERVED_FIELDS.intersection(self.value))
        if reserved:
            raise StateContractError(f"reserved field names in state: {', '.join(reserved)}")
        object.__setattr__(self, "value", MappingProxyType(dict(self.value)))

    def __getitem__(self, key: str) -> Any:
        return self.value[key]

    def __contains__(self, key: object) -> bool:
        return key in self.value

    def __iter__(self) -> Iterator[str]:
        return iter(self.value)

    def as_dict(self) -> dict[str, Any]:
        """Flatten into a plain dict: the value fields plus ``loading``."""
        return {**self.value, "loading": self.loading}

    def __repr__(self) -> str:
        return f"State({dict(self.value)!r}, loading={self.loading})"


def merge(state: State[T], patch: Patch, *, loading: bool | None = None) -> State[T]:
    """Merge a patch into a state. Patch fields overwrite, absent fields persist.

    Field order of the original state is preserved. ``loading`` replaces the
    flag when given.
    """
    check_patch(state, patch)
    return replace(
        state,
        value={**state.value, **patch},
        loading=state.loading if loading is None else loading,
    )


def check_patch(state: State, patch: Patch) -> None:
    """Raise UnknownFieldError if the patch names fields the state lacks."""
    unknown = [key for key in patch if key not in state.value]
    if unknown:
        raise UnknownFieldError(unknown)
