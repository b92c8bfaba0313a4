"""Decorators attaching journey metadata to request handlers."""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, field_validator

from .constants import DEFAULT_MISSING_INSTANCE_STATUS_CODE

HandlerT = TypeVar("HandlerT", bound=Callable[..., Any])

_JOURNEY_ATTR = "__journey_name__"
_REQUIRE_ATTR = "__require_journey_instance__"


class RequireInstanceMarker(BaseModel):
    """Marks a handler as needing an active journey instance."""

    status_code: int = DEFAULT_MISSING_INSTANCE_STATUS_CODE

    @field_validator("status_code")
    @classmethod
    def _ensure_error_status(cls, v: int) -> int:
        if v < 400 or v > 599:
            raise ValueError("status_code must be between 400 and 599")
        return v


def journey(journey_name: str) -> Callable[[HandlerT], HandlerT]:
    """Associate a handler with the journey registered as ``journey_name``."""

    if not journey_name:
        raise ValueError("journey_name must be a non-empty string")

    def decorator(handler: HandlerT) -> HandlerT:
        setattr(handler, _JOURNEY_ATTR, journey_name)
        return handler

    return decorator


def require_instance(
    status_code: int = DEFAULT_MISSING_INSTANCE_STATUS_CODE,
) -> Callable[[HandlerT], HandlerT]:
    """Mark a handler as only valid while a journey instance exists."""

    marker = RequireInstanceMarker(status_code=status_code)

    def decorator(handler: HandlerT) -> HandlerT:
        setattr(handler, _REQUIRE_ATTR, marker)
        return handler

    return decorator


def get_journey_name(handler: Any) -> Optional[str]:
    if handler is None:
        return None
    return getattr(handler, _JOURNEY_ATTR, None)


def get_require_instance(handler: Any) -> Optional[RequireInstanceMarker]:
    if handler is None:
        return None
    return getattr(handler, _REQUIRE_ATTR, None)
