"""Resolution and creation of journey instances for a request."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from pydantic import BaseModel

from .config import JourneyFlowConfig, load_config
from .descriptor import REGISTRY, JourneyDescriptor, JourneyRegistry
from .errors import (
    IncompatibleStateTypeError,
    InstanceAlreadyExistsError,
    NoJourneyMetadataError,
    NoRequestContextError,
)
from .instance import JourneyInstance
from .instance_id import JourneyInstanceId
from .metadata import get_require_instance
from .persistence import StateStore, get_store
from .request import RequestContext
from .serialization import StateSerializer, state_type_tag
from .state import InstanceStateProvider, StoreInstanceStateProvider

logger = logging.getLogger(__name__)

StateFactory = Callable[[], Union[Any, Awaitable[Any]]]


class MissingInstanceResult(BaseModel):
    """Default outcome for a request that needs an instance but has none."""

    status_code: int
    journey_name: str


MissingInstanceHandler = Callable[[JourneyDescriptor, RequestContext, int], Any]


def default_missing_instance_handler(
    descriptor: JourneyDescriptor, context: RequestContext, status_code: int
) -> MissingInstanceResult:
    return MissingInstanceResult(
        status_code=status_code, journey_name=descriptor.journey_name
    )


class JourneyInstanceProvider:
    """Locates, validates, creates and caches the journey instance of a request.

    Lookups that find nothing return ``None``; only configuration and usage
    errors raise.
    """

    def __init__(
        self,
        state_provider: InstanceStateProvider,
        registry: Optional[JourneyRegistry] = None,
        missing_instance_handler: Optional[MissingInstanceHandler] = None,
    ) -> None:
        self._state_provider = state_provider
        self._registry = registry if registry is not None else REGISTRY
        self._missing_instance_handler = (
            missing_instance_handler or default_missing_instance_handler
        )

    @property
    def registry(self) -> JourneyRegistry:
        return self._registry

    @property
    def state_provider(self) -> InstanceStateProvider:
        return self._state_provider

    # ------------------------------------------------------------------
    # Descriptor resolution
    @staticmethod
    def _ensure_context(context: Optional[RequestContext]) -> RequestContext:
        if context is None:
            raise NoRequestContextError()
        return context

    def resolve_descriptor(
        self, context: Optional[RequestContext], throw_if_missing: bool = True
    ) -> Optional[JourneyDescriptor]:
        """Return the descriptor of the journey the request's handler belongs to.

        An unregistered journey name always raises.
        """
        context = self._ensure_context(context)
        journey_name = context.get_journey_name()
        if journey_name is None:
            if throw_if_missing:
                raise NoJourneyMetadataError()
            return None
        return self._registry.get(journey_name)

    @staticmethod
    def _check_state_type(state_type: type, descriptor: JourneyDescriptor) -> None:
        if state_type is not descriptor.state_type:
            raise IncompatibleStateTypeError(state_type, descriptor.state_type)

    # ------------------------------------------------------------------
    # Resolution
    async def try_resolve_existing_instance(
        self, context: Optional[RequestContext]
    ) -> Optional[JourneyInstance[Any]]:
        """Return the live instance the request identifies, or ``None``.

        The first successful resolution is cached on the request; later calls
        return that same object without touching the store.
        """
        context = self._ensure_context(context)

        cached = context.get_cached_instance()
        if cached is not None:
            return None if cached.deleted else cached

        descriptor = self.resolve_descriptor(context, throw_if_missing=False)
        if descriptor is None:
            return None

        instance_id = JourneyInstanceId.try_resolve(descriptor, context.request_data())
        if instance_id is None:
            logger.debug(
                f"Request data does not identify an instance of {descriptor.journey_name}"
            )
            return None

        entry = await self._state_provider.get_entry(instance_id)
        if entry is None:
            logger.debug(f"No persisted instance for {instance_id}")
            return None

        if entry.journey_name != descriptor.journey_name:
            logger.warning(
                f"Ignoring instance {instance_id}: belongs to journey {entry.journey_name}"
            )
            return None

        if entry.state_type != state_type_tag(descriptor.state_type):
            logger.warning(
                f"Ignoring instance {instance_id}: state type {entry.state_type} "
                f"does not match {state_type_tag(descriptor.state_type)}"
            )
            return None

        if entry.deleted:
            logger.debug(f"Ignoring deleted instance {instance_id}")
            return None

        instance = self._state_provider.instance_from_entry(
            instance_id, entry, descriptor.state_type
        )
        return context.cache_instance(instance)

    async def get_instance(
        self, context: Optional[RequestContext], state_type: Optional[type] = None
    ) -> Optional[JourneyInstance[Any]]:
        """Return the current instance, optionally asserting its state type."""
        self.resolve_descriptor(context)

        instance = await self.try_resolve_existing_instance(context)
        if instance is None:
            return None
        if state_type is not None:
            return instance.as_type(state_type)
        return instance

    async def is_current_instance(
        self,
        context: Optional[RequestContext],
        instance: Union[JourneyInstance[Any], JourneyInstanceId],
    ) -> bool:
        """Whether the request resolves to ``instance``."""
        instance_id = (
            instance.instance_id if isinstance(instance, JourneyInstance) else instance
        )
        current = await self.try_resolve_existing_instance(context)
        return current is not None and current.instance_id == instance_id

    # ------------------------------------------------------------------
    # Creation
    async def create_instance(
        self,
        context: Optional[RequestContext],
        state: Any,
        properties: Optional[Mapping[str, Any]] = None,
        state_type: Optional[type] = None,
    ) -> JourneyInstance[Any]:
        """Persist a new instance for the request's journey.

        When the journey appends a unique key, the new identifier carries a
        freshly minted one that the current request does not; the caller must
        pass it on (e.g. in a redirect) for later requests to find the
        instance.
        """
        if state is None:
            raise ValueError("state cannot be None")

        context = self._ensure_context(context)
        descriptor = self.resolve_descriptor(context)
        if state_type is not None:
            self._check_state_type(state_type, descriptor)
        self._check_state_type(type(state), descriptor)

        request_data = context.request_data()
        instance_id = JourneyInstanceId.create(descriptor, request_data)

        # Check-then-act: without store-side transactions this is best effort.
        existing = await self._state_provider.get_entry(instance_id)
        if existing is not None and not existing.deleted:
            raise InstanceAlreadyExistsError(instance_id)

        instance = await self._state_provider.create_instance(
            descriptor.journey_name,
            instance_id,
            descriptor.state_type,
            state,
            properties,
        )

        if JourneyInstanceId.try_resolve(descriptor, request_data) == instance_id:
            cached = context.get_cached_instance()
            if cached is None or cached.deleted:
                context.replace_cached_instance(instance)
            else:
                instance = context.cache_instance(instance)

        return instance

    async def get_or_create_instance(
        self,
        context: Optional[RequestContext],
        create_state: StateFactory,
        properties: Optional[Mapping[str, Any]] = None,
        state_type: Optional[type] = None,
    ) -> JourneyInstance[Any]:
        """Return the current instance, creating one from ``create_state`` if absent.

        ``create_state`` may be a plain or coroutine function and is called at
        most once, and only when no instance exists.
        """
        if create_state is None:
            raise ValueError("create_state cannot be None")

        descriptor = self.resolve_descriptor(context)
        if state_type is not None:
            self._check_state_type(state_type, descriptor)

        instance = await self.try_resolve_existing_instance(context)
        if instance is not None:
            return instance

        new_state = create_state()
        if inspect.isawaitable(new_state):
            new_state = await new_state

        self._check_state_type(type(new_state), descriptor)
        return await self.create_instance(context, new_state, properties)

    # ------------------------------------------------------------------
    async def check_required_instance(self, context: Optional[RequestContext]) -> Any:
        """Apply the missing-instance policy for handlers marked ``require_instance``.

        Returns ``None`` when the request may proceed, otherwise whatever the
        configured missing instance handler returns.
        """
        context = self._ensure_context(context)
        marker = get_require_instance(context.handler)
        if marker is None:
            return None

        if await self.try_resolve_existing_instance(context) is not None:
            return None

        descriptor = self.resolve_descriptor(context)
        logger.info(
            f"Request for {descriptor.journey_name} has no active instance; "
            f"responding with {marker.status_code}"
        )
        return self._missing_instance_handler(descriptor, context, marker.status_code)


def build_provider(
    config: Optional[JourneyFlowConfig] = None,
    registry: Optional[JourneyRegistry] = None,
    store: Optional[StateStore] = None,
    serializer: Optional[StateSerializer] = None,
    missing_instance_handler: Optional[MissingInstanceHandler] = None,
) -> JourneyInstanceProvider:
    """Wire a :class:`JourneyInstanceProvider` from configuration."""

    config = config or load_config()
    state_provider = StoreInstanceStateProvider(
        store or get_store(config=config),
        serializer=serializer,
        key_prefix=config.key_prefix,
        soft_delete=config.soft_delete,
    )
    return JourneyInstanceProvider(
        state_provider,
        registry=registry,
        missing_instance_handler=missing_instance_handler,
    )
