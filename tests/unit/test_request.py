"""Tests for the per-request context."""

from journeyflow.metadata import journey
from journeyflow.request import RequestContext, merge_request_data


def test_route_values_take_precedence_over_query():
    data = merge_request_data({"id": 1}, [("id", "2"), ("page", "3")])
    assert data == {"id": "1", "page": "3"}


def test_repeated_query_keys_become_ordered_tuples():
    data = merge_request_data({}, [("tag", "b"), ("x", "1"), ("tag", "a")])
    assert data == {"tag": ("b", "a"), "x": "1"}


def test_from_url_parses_query():
    context = RequestContext.from_url("https://example.com/wiz?id=7&empty=")
    assert context.request_data() == {"id": "7", "empty": ""}


def test_journey_name_prefers_explicit_override():
    @journey("from-handler")
    def handler():
        pass

    assert RequestContext(handler=handler).get_journey_name() == "from-handler"
    assert (
        RequestContext(handler=handler, journey_name="explicit").get_journey_name()
        == "explicit"
    )
    assert RequestContext().get_journey_name() is None


def test_cache_instance_keeps_first_insert():
    context = RequestContext()
    first, second = object(), object()

    assert context.get_cached_instance() is None
    assert context.cache_instance(first) is first
    assert context.cache_instance(second) is first
    assert context.get_cached_instance() is first

    context.replace_cached_instance(second)
    assert context.get_cached_instance() is second
