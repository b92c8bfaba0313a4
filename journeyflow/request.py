"""Per-request context threaded through journey instance resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlsplit

from .metadata import get_journey_name

if TYPE_CHECKING:
    from .instance import JourneyInstance

RequestValue = Union[str, Tuple[str, ...]]

_INSTANCE_ITEM = "journeyflow.instance"


def merge_request_data(
    route_values: Mapping[str, Any], query: List[Tuple[str, str]]
) -> Dict[str, RequestValue]:
    """Merge route and query values; route values win on key collisions.

    Repeated query keys become ordered tuples.
    """
    grouped: Dict[str, List[str]] = {}
    for key, value in query:
        grouped.setdefault(key, []).append(value)

    merged: Dict[str, RequestValue] = {
        key: values[0] if len(values) == 1 else tuple(values)
        for key, values in grouped.items()
    }
    for key, value in route_values.items():
        if value is None:
            continue
        merged[key] = tuple(str(v) for v in value) if isinstance(value, (list, tuple)) else str(value)
    return merged


@dataclass
class RequestContext:
    """State for a single inbound request.

    ``items`` is the request-scoped cache; a context must not outlive the
    request it was built for.
    """

    route_values: Dict[str, Any] = field(default_factory=dict)
    query: List[Tuple[str, str]] = field(default_factory=list)
    handler: Optional[Callable[..., Any]] = None
    journey_name: Optional[str] = None
    items: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_url(
        cls,
        url: str,
        route_values: Optional[Dict[str, Any]] = None,
        handler: Optional[Callable[..., Any]] = None,
        journey_name: Optional[str] = None,
    ) -> "RequestContext":
        query = parse_qsl(urlsplit(url).query, keep_blank_values=True)
        return cls(
            route_values=dict(route_values or {}),
            query=query,
            handler=handler,
            journey_name=journey_name,
        )

    def request_data(self) -> Dict[str, RequestValue]:
        return merge_request_data(self.route_values, self.query)

    def get_journey_name(self) -> Optional[str]:
        """Journey bound to this request, explicit name first, then handler metadata."""
        return self.journey_name or get_journey_name(self.handler)

    def get_cached_instance(self) -> Optional["JourneyInstance[Any]"]:
        return self.items.get(_INSTANCE_ITEM)

    def cache_instance(self, instance: "JourneyInstance[Any]") -> "JourneyInstance[Any]":
        """Insert ``instance`` unless one is cached already; return the cached one.

        Concurrent resolutions within one request all converge on whichever
        instance was inserted first. This is best effort, not linearizable.
        """
        self.items.setdefault(_INSTANCE_ITEM, instance)
        return self.items[_INSTANCE_ITEM]

    def replace_cached_instance(self, instance: "JourneyInstance[Any]") -> None:
        self.items[_INSTANCE_ITEM] = instance
