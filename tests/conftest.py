import pytest

from journeyflow.descriptor import JourneyRegistry
from journeyflow.persistence import InMemoryStateStore
from journeyflow.provider import JourneyInstanceProvider
from journeyflow.state import StoreInstanceStateProvider


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def state_provider(store) -> StoreInstanceStateProvider:
    return StoreInstanceStateProvider(store)


@pytest.fixture
def registry() -> JourneyRegistry:
    return JourneyRegistry()


@pytest.fixture
def provider(state_provider, registry) -> JourneyInstanceProvider:
    return JourneyInstanceProvider(state_provider, registry=registry)
