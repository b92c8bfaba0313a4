"""Canonical identity of a journey instance."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, unquote

from .constants import UNIQUE_KEY_NAME
from .descriptor import JourneyDescriptor
from .errors import MissingDependentKeyError

KeyValue = Union[str, Tuple[str, ...]]


def normalize_value(value: Any) -> KeyValue:
    """Coerce request data into a string or an ordered tuple of strings."""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        values = tuple(str(v) for v in value)
        if not values:
            raise ValueError("Key values must contain at least one value")
        return values[0] if len(values) == 1 else values
    if value is None:
        raise ValueError("Key values cannot be None")
    return str(value)


def _lookup(request_data: Mapping[str, Any], key: str) -> Optional[KeyValue]:
    value = request_data.get(key)
    if value is None or (isinstance(value, (list, tuple)) and not value):
        return None
    return normalize_value(value)


def _encode(value: str) -> str:
    return quote(value, safe="")


@dataclass(frozen=True)
class JourneyInstanceId:
    """Order-sensitive identifier for one journey instance.

    ``key_values`` accepts either a mapping or a sequence of ``(key, value)``
    pairs; insertion order is preserved and takes part in equality.
    """

    journey_name: str
    key_values: Tuple[Tuple[str, KeyValue], ...] = ()

    def __post_init__(self) -> None:
        if not self.journey_name:
            raise ValueError("journey_name must be a non-empty string")
        raw = self.key_values
        pairs = raw.items() if isinstance(raw, Mapping) else raw
        normalized: List[Tuple[str, KeyValue]] = []
        seen: set[str] = set()
        for key, value in pairs:
            if key in seen:
                raise ValueError(f"Duplicate key: '{key}'")
            seen.add(key)
            normalized.append((key, normalize_value(value)))
        object.__setattr__(self, "key_values", tuple(normalized))

    # ------------------------------------------------------------------
    @property
    def keys(self) -> Mapping[str, KeyValue]:
        return MappingProxyType(dict(self.key_values))

    @property
    def unique_key(self) -> Optional[str]:
        value = self.keys.get(UNIQUE_KEY_NAME)
        if isinstance(value, tuple):
            return value[0]
        return value

    @property
    def query_string(self) -> str:
        components = []
        for key, value in self.key_values:
            values = value if isinstance(value, tuple) else (value,)
            for v in values:
                components.append(f"{_encode(key)}={_encode(v)}")
        return "&".join(components)

    @property
    def serializable_id(self) -> str:
        """Canonical string used as store key and embedded in links."""
        query = self.query_string
        name = _encode(self.journey_name)
        return f"{name}?{query}" if query else name

    def route_values(self) -> Dict[str, Union[str, List[str]]]:
        """Key values shaped for building a follow-up link or redirect."""
        return {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in self.key_values
        }

    def with_query(self, url: str) -> str:
        """Append this identifier's key values to ``url``."""
        query = self.query_string
        if not query:
            return url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{query}"

    def __str__(self) -> str:
        return self.serializable_id

    def __repr__(self) -> str:
        return f"JourneyInstanceId({self.serializable_id!r})"

    # ------------------------------------------------------------------
    @classmethod
    def parse(cls, serialized: str) -> "JourneyInstanceId":
        """Rebuild an identifier from its :attr:`serializable_id`."""
        name, _, query = serialized.partition("?")
        grouped: Dict[str, List[str]] = {}
        for key, value in parse_qsl(query, keep_blank_values=True):
            grouped.setdefault(key, []).append(value)
        return cls(unquote(name), grouped)

    @classmethod
    def create(
        cls, descriptor: JourneyDescriptor, request_data: Mapping[str, Any]
    ) -> "JourneyInstanceId":
        """Build the identifier for a new instance.

        Every required key must be present in ``request_data``. When the
        journey appends a unique key, a fresh one is always minted, replacing
        any value the request already carried.
        """
        pairs: List[Tuple[str, KeyValue]] = []
        for key, optional in descriptor.iter_keys():
            value = _lookup(request_data, key)
            if value is None:
                if optional:
                    continue
                raise MissingDependentKeyError(key)
            pairs.append((key, value))

        if descriptor.append_unique_key:
            pairs.append((UNIQUE_KEY_NAME, str(uuid.uuid4())))

        return cls(descriptor.journey_name, tuple(pairs))

    @classmethod
    def try_resolve(
        cls, descriptor: JourneyDescriptor, request_data: Mapping[str, Any]
    ) -> Optional["JourneyInstanceId"]:
        """Return the identifier ``request_data`` points at, or ``None``."""
        pairs: List[Tuple[str, KeyValue]] = []
        for key, optional in descriptor.iter_keys():
            value = _lookup(request_data, key)
            if value is None:
                if optional:
                    continue
                return None
            pairs.append((key, value))

        if descriptor.append_unique_key:
            token = _lookup(request_data, UNIQUE_KEY_NAME)
            if token is None:
                return None
            pairs.append(
                (UNIQUE_KEY_NAME, token[0] if isinstance(token, tuple) else token)
            )

        return cls(descriptor.journey_name, tuple(pairs))
