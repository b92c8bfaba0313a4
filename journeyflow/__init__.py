"""journeyflow: multi-step journey state for web request handlers."""

from .constants import UNIQUE_KEY_NAME
from .descriptor import REGISTRY, JourneyDescriptor, JourneyRegistry, register_journey
from .errors import (
    IncompatibleStateTypeError,
    InstanceAlreadyExistsError,
    InstanceNotFoundError,
    InvalidStateError,
    JourneyFlowError,
    MissingDependentKeyError,
    NoJourneyMetadataError,
    NoRequestContextError,
    UnknownJourneyError,
)
from .instance import InstanceStatus, JourneyInstance
from .instance_id import JourneyInstanceId
from .metadata import journey, require_instance
from .persistence import get_store
from .provider import JourneyInstanceProvider, MissingInstanceResult, build_provider
from .request import RequestContext
from .serialization import JsonStateSerializer, StateTypeRegistry
from .state import InstanceStateProvider, StoreInstanceStateProvider

__version__ = "0.1.0"
__all__ = [
    "UNIQUE_KEY_NAME",
    "REGISTRY",
    "JourneyDescriptor",
    "JourneyRegistry",
    "register_journey",
    "JourneyFlowError",
    "NoRequestContextError",
    "NoJourneyMetadataError",
    "UnknownJourneyError",
    "MissingDependentKeyError",
    "IncompatibleStateTypeError",
    "InstanceAlreadyExistsError",
    "InstanceNotFoundError",
    "InvalidStateError",
    "InstanceStatus",
    "JourneyInstance",
    "JourneyInstanceId",
    "journey",
    "require_instance",
    "get_store",
    "JourneyInstanceProvider",
    "MissingInstanceResult",
    "build_provider",
    "RequestContext",
    "JsonStateSerializer",
    "StateTypeRegistry",
    "InstanceStateProvider",
    "StoreInstanceStateProvider",
]
