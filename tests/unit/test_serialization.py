"""Tests for state serialization and type tags."""

from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from journeyflow.serialization import JsonStateSerializer, StateTypeRegistry, state_type_tag


class ModelState(BaseModel):
    api_key: str = "test-key"
    timeout: int = 30


@dataclass
class Sample:
    value: int


def test_pydantic_model_serialization():
    serializer = JsonStateSerializer()
    data = serializer.serialize(ModelState, ModelState(api_key="secret", timeout=60))

    assert isinstance(data, bytes)
    restored = serializer.deserialize(ModelState, data)
    assert isinstance(restored, ModelState)
    assert restored.api_key == "secret"
    assert restored.timeout == 60


def test_dataclass_serialization():
    serializer = JsonStateSerializer()
    restored = serializer.deserialize(Sample, serializer.serialize(Sample, Sample(5)))
    assert isinstance(restored, Sample)
    assert restored.value == 5


def test_deserialize_invalid_data_raises_value_error():
    serializer = JsonStateSerializer()
    with pytest.raises(ValueError):
        serializer.deserialize(Sample, b'{"value": "not a number"}')
    with pytest.raises(ValueError, match="empty"):
        serializer.deserialize(Sample, b"")


def test_state_type_tag():
    assert state_type_tag(Sample) == f"{__name__}:Sample"


def test_state_type_registry_is_explicit():
    registry = StateTypeRegistry([ModelState])
    assert registry.resolve(state_type_tag(ModelState)) is ModelState
    assert registry.resolve(state_type_tag(Sample)) is None
    assert state_type_tag(Sample) not in registry


def test_state_type_registry_import_fallback():
    registry = StateTypeRegistry()
    assert registry.resolve(state_type_tag(Sample), allow_import=True) is Sample
    assert state_type_tag(Sample) in registry
    assert registry.resolve("missing.module:Nope", allow_import=True) is None
