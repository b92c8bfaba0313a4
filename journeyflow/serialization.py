"""State payload serialization and state type tags."""

from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, Iterable, Optional, Protocol

from pydantic import TypeAdapter

logger = logging.getLogger(__name__)


def state_type_tag(state_type: type) -> str:
    """Stable tag identifying ``state_type`` in persisted entries."""
    return f"{state_type.__module__}:{state_type.__qualname__}"


class StateSerializer(Protocol):
    """Converts state payloads to and from opaque bytes."""

    def serialize(self, state_type: type, state: Any) -> bytes:
        """Encode ``state`` as ``state_type``."""

    def deserialize(self, state_type: type, data: bytes) -> Any:
        """Decode ``data`` into an instance of ``state_type``."""


class JsonStateSerializer:
    """JSON serializer backed by pydantic type adapters.

    Handles pydantic models, dataclasses, TypedDicts and plain containers.
    """

    def __init__(self) -> None:
        self._adapters: Dict[type, TypeAdapter[Any]] = {}

    def _adapter(self, state_type: type) -> TypeAdapter[Any]:
        adapter = self._adapters.get(state_type)
        if adapter is None:
            adapter = TypeAdapter(state_type)
            self._adapters[state_type] = adapter
        return adapter

    def serialize(self, state_type: type, state: Any) -> bytes:
        try:
            return self._adapter(state_type).dump_json(state)
        except Exception as e:
            raise ValueError(
                f"Failed to serialize state of type '{state_type_tag(state_type)}': {e}"
            ) from e

    def deserialize(self, state_type: type, data: bytes) -> Any:
        if not data:
            raise ValueError("Data is empty.")
        try:
            return self._adapter(state_type).validate_json(data)
        except Exception as e:
            raise ValueError(
                f"Failed to deserialize state of type '{state_type_tag(state_type)}': {e}"
            ) from e


class StateTypeRegistry:
    """Explicit mapping from persisted type tags to state types.

    Resolution never drives instance lookup; the provider always supplies the
    expected type. The registry serves inspection tooling.
    """

    def __init__(self, state_types: Iterable[type] = ()) -> None:
        self._types: Dict[str, type] = {}
        for state_type in state_types:
            self.register(state_type)

    def register(self, state_type: type) -> str:
        tag = state_type_tag(state_type)
        self._types[tag] = state_type
        return tag

    def resolve(self, tag: str, allow_import: bool = False) -> Optional[type]:
        """Look ``tag`` up, optionally importing its module as a fallback."""
        state_type = self._types.get(tag)
        if state_type is not None or not allow_import:
            return state_type

        module_name, _, qualname = tag.partition(":")
        if not module_name or not qualname:
            return None
        try:
            obj: Any = importlib.import_module(module_name)
            for part in qualname.split("."):
                obj = getattr(obj, part)
        except (ImportError, AttributeError) as e:
            logger.debug(f"Could not import state type {tag}: {e}")
            return None
        if not isinstance(obj, type):
            return None
        self._types[tag] = obj
        return obj

    def __contains__(self, tag: object) -> bool:
        return tag in self._types
