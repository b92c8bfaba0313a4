"""Persisted form of a journey instance."""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field, field_serializer, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreEntry(BaseModel):
    """Instance record as written to a :class:`StateStore`.

    ``state`` holds the serializer's bytes and is base64 encoded on dump.
    """

    journey_name: str
    instance_id: str
    state_type: str = Field(..., description="Type tag of the serialized state")
    state: bytes
    properties: Dict[str, Any] = Field(default_factory=dict)
    completed: bool = False
    deleted: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_serializer("state")
    def _dump_state(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")

    @field_validator("state", mode="before")
    @classmethod
    def _load_state(cls, value: Any) -> Any:
        if isinstance(value, str):
            return base64.b64decode(value)
        return value

    @property
    def status(self) -> str:
        if self.deleted:
            return "deleted"
        return "completed" if self.completed else "active"

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "StoreEntry":
        return cls.model_validate_json(data)
