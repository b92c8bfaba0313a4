"""Tests for the store-backed instance state provider."""

import pytest
from pydantic import BaseModel

from journeyflow.errors import (
    IncompatibleStateTypeError,
    InstanceAlreadyExistsError,
    InstanceNotFoundError,
)
from journeyflow.instance_id import JourneyInstanceId
from journeyflow.persistence import InMemoryStateStore, SQLiteStateStore, StoreEntry
from journeyflow.serialization import state_type_tag
from journeyflow.state import StoreInstanceStateProvider


class CartState(BaseModel):
    items: list[str] = []


class OtherState(BaseModel):
    value: int = 0


@pytest.fixture(params=["inmemory", "sqlite"])
def backend(request, tmp_path):
    if request.param == "sqlite":
        return SQLiteStateStore(tmp_path / "state.db")
    return InMemoryStateStore()


INSTANCE_ID = JourneyInstanceId("cart", {"id": "42"})


@pytest.mark.asyncio
async def test_instance_crud(backend):
    state_provider = StoreInstanceStateProvider(backend)

    created = await state_provider.create_instance(
        "cart", INSTANCE_ID, CartState, CartState(items=["a"]), {"source": "web"}
    )
    assert created.state.items == ["a"]

    entry = await state_provider.get_entry(INSTANCE_ID)
    assert entry.journey_name == "cart"
    assert entry.instance_id == "cart?id=42"
    assert entry.state_type == state_type_tag(CartState)
    assert entry.properties == {"source": "web"}
    assert entry.status == "active"

    await state_provider.update_instance_state(
        INSTANCE_ID, CartState, CartState(items=["a", "b"])
    )
    await state_provider.complete_instance(INSTANCE_ID)

    loaded = await state_provider.get_instance(INSTANCE_ID, CartState)
    assert loaded.state.items == ["a", "b"]
    assert loaded.completed is True
    assert loaded.properties == {"source": "web"}

    entries = await state_provider.list_entries()
    assert [e.instance_id for e in entries] == ["cart?id=42"]

    await state_provider.delete_instance(INSTANCE_ID)
    assert await state_provider.get_instance(INSTANCE_ID, CartState) is None
    assert await state_provider.list_entries() == []


@pytest.mark.asyncio
async def test_create_existing_instance_fails(backend):
    state_provider = StoreInstanceStateProvider(backend)
    await state_provider.create_instance("cart", INSTANCE_ID, CartState, CartState())

    with pytest.raises(InstanceAlreadyExistsError):
        await state_provider.create_instance("cart", INSTANCE_ID, CartState, CartState())


@pytest.mark.asyncio
async def test_mutating_missing_instance_fails(backend):
    state_provider = StoreInstanceStateProvider(backend)

    with pytest.raises(InstanceNotFoundError):
        await state_provider.update_instance_state(INSTANCE_ID, CartState, CartState())
    with pytest.raises(InstanceNotFoundError):
        await state_provider.complete_instance(INSTANCE_ID)
    with pytest.raises(InstanceNotFoundError):
        await state_provider.delete_instance(INSTANCE_ID)


@pytest.mark.asyncio
async def test_soft_delete_keeps_flagged_entry(backend):
    state_provider = StoreInstanceStateProvider(backend, soft_delete=True)
    await state_provider.create_instance("cart", INSTANCE_ID, CartState, CartState())

    await state_provider.delete_instance(INSTANCE_ID)

    entry = await state_provider.get_entry(INSTANCE_ID)
    assert entry.deleted is True
    assert entry.status == "deleted"
    with pytest.raises(InstanceNotFoundError):
        await state_provider.update_instance_state(INSTANCE_ID, CartState, CartState())


@pytest.mark.asyncio
async def test_create_replaces_soft_deleted_entry(backend):
    state_provider = StoreInstanceStateProvider(backend, soft_delete=True)
    await state_provider.create_instance("cart", INSTANCE_ID, CartState, CartState(items=["old"]))
    await state_provider.delete_instance(INSTANCE_ID)

    recreated = await state_provider.create_instance(
        "cart", INSTANCE_ID, CartState, CartState(items=["new"])
    )
    assert recreated.deleted is False

    entry = await state_provider.get_entry(INSTANCE_ID)
    assert entry.deleted is False
    loaded = await state_provider.get_instance(INSTANCE_ID, CartState)
    assert loaded.state.items == ["new"]

    with pytest.raises(InstanceAlreadyExistsError):
        await state_provider.create_instance("cart", INSTANCE_ID, CartState, CartState())

@pytest.mark.asyncio
async def test_reading_with_other_type_is_rejected(backend):
    state_provider = StoreInstanceStateProvider(backend)
    await state_provider.create_instance("cart", INSTANCE_ID, CartState, CartState())

    with pytest.raises(IncompatibleStateTypeError):
        await state_provider.get_instance(INSTANCE_ID, OtherState)


@pytest.mark.asyncio
async def test_store_only_sees_prefixed_opaque_bytes(store):
    state_provider = StoreInstanceStateProvider(store, key_prefix="wizards/")
    await state_provider.create_instance("cart", INSTANCE_ID, CartState, CartState(items=["x"]))

    keys = await store.list_keys()
    assert keys == ["wizards/cart?id=42"]
    raw = await store.get_state(keys[0])
    assert isinstance(raw, bytes)
    assert StoreEntry.from_bytes(raw).state == b'{"items":["x"]}'
