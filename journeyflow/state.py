"""Instance state providers: typed journey instances over a byte store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol

from .constants import DEFAULT_KEY_PREFIX
from .errors import (
    IncompatibleStateTypeError,
    InstanceAlreadyExistsError,
    InstanceNotFoundError,
)
from .instance import JourneyInstance
from .instance_id import JourneyInstanceId
from .persistence import StateStore, StoreEntry
from .serialization import JsonStateSerializer, StateSerializer, state_type_tag

logger = logging.getLogger(__name__)


class InstanceStateProvider(Protocol):
    """Create/read/update/complete/delete contract for journey instances."""

    async def create_instance(
        self,
        journey_name: str,
        instance_id: JourneyInstanceId,
        state_type: type,
        state: Any,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> JourneyInstance[Any]:
        """Persist a new instance; fail if a live one exists for ``instance_id``."""

    async def get_entry(self, instance_id: JourneyInstanceId) -> StoreEntry | None:
        """Return the raw persisted entry, if any."""

    async def get_instance(
        self, instance_id: JourneyInstanceId, state_type: type
    ) -> JourneyInstance[Any] | None:
        """Load the instance, decoding its state as ``state_type``."""

    def instance_from_entry(
        self, instance_id: JourneyInstanceId, entry: StoreEntry, state_type: type
    ) -> JourneyInstance[Any]:
        """Wrap an already fetched entry."""

    async def update_instance_state(
        self, instance_id: JourneyInstanceId, state_type: type, state: Any
    ) -> None:
        """Overwrite the persisted state."""

    async def complete_instance(self, instance_id: JourneyInstanceId) -> None:
        """Flag the persisted instance completed."""

    async def delete_instance(self, instance_id: JourneyInstanceId) -> None:
        """Remove the persisted instance."""

    async def list_entries(self) -> list[StoreEntry]:
        """Return every persisted entry."""


class StoreInstanceStateProvider(InstanceStateProvider):
    """Keep journey instances in a :class:`StateStore` as serialized entries.

    The store only ever sees bytes. The state type is recorded as a tag and
    readers must name the type they expect.
    """

    def __init__(
        self,
        store: StateStore,
        serializer: StateSerializer | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        soft_delete: bool = False,
    ) -> None:
        self._store = store
        self._serializer = serializer or JsonStateSerializer()
        self._key_prefix = key_prefix
        self._soft_delete = soft_delete

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def soft_delete(self) -> bool:
        return self._soft_delete

    def key_for(self, instance_id: JourneyInstanceId) -> str:
        return f"{self._key_prefix}{instance_id.serializable_id}"

    # ------------------------------------------------------------------
    async def _read_entry(self, instance_id: JourneyInstanceId) -> StoreEntry | None:
        data = await self._store.get_state(self.key_for(instance_id))
        if data is None:
            return None
        return StoreEntry.from_bytes(data)

    async def _write_entry(self, instance_id: JourneyInstanceId, entry: StoreEntry) -> None:
        await self._store.set_state(self.key_for(instance_id), entry.to_bytes())

    async def _require_entry(self, instance_id: JourneyInstanceId) -> StoreEntry:
        entry = await self._read_entry(instance_id)
        if entry is None or entry.deleted:
            raise InstanceNotFoundError(instance_id)
        return entry

    # ------------------------------------------------------------------
    async def create_instance(
        self,
        journey_name: str,
        instance_id: JourneyInstanceId,
        state_type: type,
        state: Any,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> JourneyInstance[Any]:
        if state is None:
            raise ValueError("state cannot be None")
        existing = await self._read_entry(instance_id)
        if existing is not None and not existing.deleted:
            raise InstanceAlreadyExistsError(instance_id)

        properties = dict(properties or {})
        entry = StoreEntry(
            journey_name=journey_name,
            instance_id=instance_id.serializable_id,
            state_type=state_type_tag(state_type),
            state=self._serializer.serialize(state_type, state),
            properties=properties,
        )
        await self._write_entry(instance_id, entry)
        logger.info(f"Created journey instance {instance_id}")

        return JourneyInstance(
            self, journey_name, instance_id, state_type, state, properties
        )

    async def get_entry(self, instance_id: JourneyInstanceId) -> StoreEntry | None:
        return await self._read_entry(instance_id)

    async def get_instance(
        self, instance_id: JourneyInstanceId, state_type: type
    ) -> JourneyInstance[Any] | None:
        entry = await self._read_entry(instance_id)
        if entry is None:
            return None
        return self.instance_from_entry(instance_id, entry, state_type)

    def instance_from_entry(
        self, instance_id: JourneyInstanceId, entry: StoreEntry, state_type: type
    ) -> JourneyInstance[Any]:
        if entry.state_type != state_type_tag(state_type):
            raise IncompatibleStateTypeError(state_type, entry.state_type)
        state = self._serializer.deserialize(state_type, entry.state)
        return JourneyInstance(
            self,
            entry.journey_name,
            instance_id,
            state_type,
            state,
            entry.properties,
            completed=entry.completed,
            deleted=entry.deleted,
        )

    async def update_instance_state(
        self, instance_id: JourneyInstanceId, state_type: type, state: Any
    ) -> None:
        entry = await self._require_entry(instance_id)
        entry.state = self._serializer.serialize(state_type, state)
        entry.state_type = state_type_tag(state_type)
        entry.updated_at = datetime.now(timezone.utc)
        await self._write_entry(instance_id, entry)
        logger.debug(f"Updated state of journey instance {instance_id}")

    async def complete_instance(self, instance_id: JourneyInstanceId) -> None:
        entry = await self._require_entry(instance_id)
        entry.completed = True
        entry.updated_at = datetime.now(timezone.utc)
        await self._write_entry(instance_id, entry)
        logger.info(f"Completed journey instance {instance_id}")

    async def delete_instance(self, instance_id: JourneyInstanceId) -> None:
        entry = await self._require_entry(instance_id)
        if self._soft_delete:
            entry.deleted = True
            entry.updated_at = datetime.now(timezone.utc)
            await self._write_entry(instance_id, entry)
        else:
            await self._store.delete_state(self.key_for(instance_id))
        logger.info(f"Deleted journey instance {instance_id}")

    async def list_entries(self) -> list[StoreEntry]:
        entries: list[StoreEntry] = []
        for key in await self._store.list_keys(self._key_prefix):
            data = await self._store.get_state(key)
            if data is not None:
                entries.append(StoreEntry.from_bytes(data))
        return entries
