"""journeyflow exception hierarchy."""

from __future__ import annotations

from typing import Any


class JourneyFlowError(Exception):
    """Base exception for all journeyflow errors."""


class NoRequestContextError(JourneyFlowError):
    """No active request context to resolve journey data from."""

    def __init__(self) -> None:
        super().__init__("No active request context.")


class NoJourneyMetadataError(JourneyFlowError):
    """The matched handler carries no journey metadata."""

    def __init__(self) -> None:
        super().__init__("No journey metadata found on handler.")


class UnknownJourneyError(JourneyFlowError):
    """A journey name was referenced that is not registered."""

    def __init__(self, journey_name: str) -> None:
        self.journey_name = journey_name
        super().__init__(f"Journey '{journey_name}' is not registered.")


class MissingDependentKeyError(JourneyFlowError):
    """Request data lacks a key the journey identity depends on."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Request is missing dependent request data entry: '{key}'.")


class IncompatibleStateTypeError(JourneyFlowError):
    """A state payload type does not match the journey's declared state type."""

    def __init__(self, requested: Any, actual: Any) -> None:
        self.requested = requested
        self.actual = actual
        super().__init__(
            f"{_type_name(requested)} is not compatible with the journey's "
            f"state type ({_type_name(actual)})."
        )


class InstanceAlreadyExistsError(JourneyFlowError):
    """An instance is already persisted under the identifier."""

    def __init__(self, instance_id: Any) -> None:
        self.instance_id = instance_id
        super().__init__(f"Instance already exists with this ID: '{instance_id}'.")


class InstanceNotFoundError(JourneyFlowError):
    """No persisted instance exists for the identifier."""

    def __init__(self, instance_id: Any) -> None:
        self.instance_id = instance_id
        super().__init__(f"Instance does not exist: '{instance_id}'.")


class InvalidStateError(JourneyFlowError):
    """A completed or deleted instance was asked to mutate."""


def _type_name(value: Any) -> str:
    if isinstance(value, type):
        return f"{value.__module__}.{value.__qualname__}"
    return str(value)
