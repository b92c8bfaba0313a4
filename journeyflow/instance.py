"""Lifecycle-aware wrapper around a journey's state payload."""

from __future__ import annotations

import copy
import enum
import inspect
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Generic,
    Mapping,
    Optional,
    TypeVar,
    Union,
    cast,
)

from .errors import IncompatibleStateTypeError, InvalidStateError
from .instance_id import JourneyInstanceId

if TYPE_CHECKING:
    from .state import InstanceStateProvider

TState = TypeVar("TState")
T = TypeVar("T")

StateUpdate = Callable[[TState], Union[Optional[TState], Awaitable[Optional[TState]]]]


class InstanceStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DELETED = "deleted"


class JourneyInstance(Generic[TState]):
    """A single journey instance and its state.

    ``completed`` and ``deleted`` only ever go from ``False`` to ``True``.
    Every mutation is written to the state provider before the in-memory
    copy changes, so a failed or cancelled write leaves this object as it was.
    """

    def __init__(
        self,
        state_provider: "InstanceStateProvider",
        journey_name: str,
        instance_id: JourneyInstanceId,
        state_type: type,
        state: TState,
        properties: Optional[Mapping[str, Any]] = None,
        completed: bool = False,
        deleted: bool = False,
    ) -> None:
        if state is None:
            raise ValueError("state cannot be None")
        self._state_provider = state_provider
        self._journey_name = journey_name
        self._instance_id = instance_id
        self._state_type = state_type
        self._state = state
        self._properties: Mapping[str, Any] = MappingProxyType(dict(properties or {}))
        self._completed = completed
        self._deleted = deleted

    @property
    def journey_name(self) -> str:
        return self._journey_name

    @property
    def instance_id(self) -> JourneyInstanceId:
        return self._instance_id

    @property
    def state_type(self) -> type:
        return self._state_type

    @property
    def state(self) -> TState:
        return self._state

    @property
    def properties(self) -> Mapping[str, Any]:
        return self._properties

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def deleted(self) -> bool:
        return self._deleted

    @property
    def status(self) -> InstanceStatus:
        if self._deleted:
            return InstanceStatus.DELETED
        if self._completed:
            return InstanceStatus.COMPLETED
        return InstanceStatus.ACTIVE

    def as_type(self, state_type: type[T]) -> "JourneyInstance[T]":
        """Return this instance typed for ``state_type``, or raise if it differs."""
        if state_type is not self._state_type:
            raise IncompatibleStateTypeError(state_type, self._state_type)
        return cast("JourneyInstance[T]", self)

    def _ensure_mutable(self) -> None:
        if self._completed:
            raise InvalidStateError("Instance has been completed.")
        if self._deleted:
            raise InvalidStateError("Instance has been deleted.")

    async def update_state(self, state: TState) -> None:
        """Replace the state, persisting it first."""
        if state is None:
            raise ValueError("state cannot be None")
        if type(state) is not self._state_type:
            raise IncompatibleStateTypeError(type(state), self._state_type)
        self._ensure_mutable()

        await self._state_provider.update_instance_state(
            self._instance_id, self._state_type, state
        )
        self._state = state

    async def update_state_with(self, update: StateUpdate[TState]) -> TState:
        """Apply ``update`` to a copy of the state and persist the result.

        ``update`` may mutate its argument and return ``None``, or return a
        replacement state. It may be a coroutine function.
        """
        self._ensure_mutable()

        working = copy.deepcopy(self._state)
        result = update(working)
        if inspect.isawaitable(result):
            result = await result
        new_state = working if result is None else result

        await self.update_state(cast(TState, new_state))
        return self._state

    async def complete(self) -> None:
        if self._deleted:
            raise InvalidStateError("Instance has been deleted.")
        if self._completed:
            return

        await self._state_provider.complete_instance(self._instance_id)
        self._completed = True

    async def delete(self) -> None:
        if self._deleted:
            return

        await self._state_provider.delete_instance(self._instance_id)
        self._deleted = True

    def __repr__(self) -> str:
        return (
            f"JourneyInstance({self._instance_id.serializable_id!r}, "
            f"status={self.status.value})"
        )
