"""Journey descriptors and the process-wide journey registry."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import OPTIONAL_KEY_SUFFIX, UNIQUE_KEY_NAME
from .errors import UnknownJourneyError

logger = logging.getLogger(__name__)


def normalize_key(key: str) -> Tuple[str, bool]:
    """Split a declared request data key into ``(name, optional)``."""
    if key.endswith(OPTIONAL_KEY_SUFFIX):
        return key[: -len(OPTIONAL_KEY_SUFFIX)], True
    return key, False


class JourneyDescriptor(BaseModel):
    """Immutable metadata describing one journey type."""

    model_config = ConfigDict(frozen=True)

    journey_name: str
    state_type: type
    request_data_keys: Tuple[str, ...] = Field(
        default=(), description="Ordered request data keys the identity depends on"
    )
    append_unique_key: bool = False

    @field_validator("journey_name")
    @classmethod
    def _ensure_name(cls, v: str) -> str:
        if not v:
            raise ValueError("journey_name must be a non-empty string")
        return v

    @field_validator("request_data_keys")
    @classmethod
    def _ensure_keys(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        seen: set[str] = set()
        for key in v:
            name, _ = normalize_key(key)
            if not name:
                raise ValueError("request data keys must be non-empty strings")
            if name == UNIQUE_KEY_NAME:
                raise ValueError(
                    f"'{UNIQUE_KEY_NAME}' is reserved for the instance unique key"
                )
            if name in seen:
                raise ValueError(f"Duplicate request data key: '{name}'")
            seen.add(name)
        return v

    def iter_keys(self) -> Iterator[Tuple[str, bool]]:
        """Yield ``(name, optional)`` for each dependent key, in order."""
        for key in self.request_data_keys:
            yield normalize_key(key)


class JourneyRegistry:
    """Registry of journey descriptors keyed by journey name."""

    def __init__(self) -> None:
        self._descriptors: Dict[str, JourneyDescriptor] = {}

    def register(self, descriptor: JourneyDescriptor) -> JourneyDescriptor:
        """Add ``descriptor``; re-registering an equal descriptor is a no-op."""
        existing = self._descriptors.get(descriptor.journey_name)
        if existing is not None:
            if existing != descriptor:
                raise ValueError(
                    f"Journey '{descriptor.journey_name}' is already registered "
                    "with a different descriptor"
                )
            return existing
        self._descriptors[descriptor.journey_name] = descriptor
        logger.debug(f"Registered journey {descriptor.journey_name}")
        return descriptor

    def get(self, journey_name: str) -> JourneyDescriptor:
        descriptor = self._descriptors.get(journey_name)
        if descriptor is None:
            raise UnknownJourneyError(journey_name)
        return descriptor

    def find(self, journey_name: str) -> Optional[JourneyDescriptor]:
        return self._descriptors.get(journey_name)

    def clear(self) -> None:
        self._descriptors.clear()

    def __contains__(self, journey_name: object) -> bool:
        return journey_name in self._descriptors

    def __iter__(self) -> Iterator[JourneyDescriptor]:
        return iter(list(self._descriptors.values()))

    def __len__(self) -> int:
        return len(self._descriptors)


# Default registry used when a provider is not given one explicitly.
REGISTRY = JourneyRegistry()


def register_journey(
    journey_name: str,
    state_type: type,
    *request_data_keys: str,
    append_unique_key: bool = False,
    registry: Optional[JourneyRegistry] = None,
) -> JourneyDescriptor:
    """Build a :class:`JourneyDescriptor` and add it to ``registry``.

    Keys ending in ``?`` are optional: a request without them still resolves
    an identifier, just without that entry.
    """

    descriptor = JourneyDescriptor(
        journey_name=journey_name,
        state_type=state_type,
        request_data_keys=request_data_keys,
        append_unique_key=append_unique_key,
    )
    return (registry if registry is not None else REGISTRY).register(descriptor)
