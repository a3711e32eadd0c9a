from __future__ import annotations

from unittest.mock import Mock

import pytest

from lazybridge.errors import CallbackNotRegisteredError
from lazybridge.runtime import EvaluationContext, LazyProxy, reset_data_proxies, undefined
from lazybridge.runtime.callbacks import Callbacks
from lazybridge.runtime.metadata import function_marker
from lazybridge.runtime.reset import NAMESPACE_PROXIES


def _context(callbacks: Callbacks) -> EvaluationContext:
    return EvaluationContext(callbacks)


def test_reset_builds_one_root_proxy_per_namespace(
    callbacks: Callbacks, get_value: Mock, remote: dict
) -> None:
    remote[("$runIndex",)] = 2
    remote[("$itemIndex",)] = 0
    context = _context(callbacks)
    reset_data_proxies(context)

    for name in NAMESPACE_PROXIES:
        proxy = context.data[name]
        assert isinstance(proxy, LazyProxy)
        assert proxy.__path == (name,)
        assert context.globals[name] is proxy
    assert context.data["$runIndex"] == 2
    assert context.data["$itemIndex"] == 0
    assert context.globals["$runIndex"] == 2
    assert context.globals["__data"] is context.data
    fetched = sorted(call.args[0][0] for call in get_value.call_args_list)
    assert fetched == ["$itemIndex", "$items", "$runIndex"]


def test_missing_scalars_become_undefined(
    callbacks: Callbacks, get_value: Mock
) -> None:
    get_value.side_effect = KeyError("not available")
    context = _context(callbacks)
    reset_data_proxies(context)

    assert context.data["$runIndex"] is undefined
    assert context.data["$itemIndex"] is undefined
    assert context.data["$items"] is undefined


def test_items_function_is_wrapped(
    callbacks: Callbacks, remote: dict, call_function: Mock
) -> None:
    remote[("$items",)] = function_marker("$items")
    context = _context(callbacks)
    reset_data_proxies(context)

    items = context.globals["$items"]
    assert items("Node 1") == "called"
    call_function.assert_called_once_with(["$items"], ["Node 1"])


def test_items_plain_value_is_stored_as_is(callbacks: Callbacks, remote: dict) -> None:
    remote[("$items",)] = [1, 2]
    context = _context(callbacks)
    reset_data_proxies(context)

    assert context.data["$items"] == [1, 2]


def test_items_skipped_without_call_primitive(get_value: Mock) -> None:
    context = _context(Callbacks(get_value_at_path=get_value))
    context.globals["$items"] = "stale"
    reset_data_proxies(context)

    assert "$items" not in context.data
    assert "$items" not in context.globals
    assert ["$items"] not in [call.args[0] for call in get_value.call_args_list]


def test_missing_wiring_is_fatal() -> None:
    context = _context(Callbacks())

    with pytest.raises(CallbackNotRegisteredError, match="get_value_at_path"):
        reset_data_proxies(context)


def test_helpers_are_published_on_data(callbacks: Callbacks) -> None:
    context = _context(callbacks)
    reset_data_proxies(context)

    for name in ("DateTime", "extend", "extendOptional", "$jmespath", "__sanitize"):
        assert name in context.data
        assert name in context.globals
    assert context.data["extend"] is context.globals["extend"]


def test_second_reset_does_not_leak_cached_values(
    callbacks: Callbacks, remote: dict, get_value: Mock
) -> None:
    remote[("$json", "name")] = "first"
    context = _context(callbacks)

    reset_data_proxies(context)
    before = context.globals["$json"]
    assert before.name == "first"

    remote[("$json", "name")] = "second"
    reset_data_proxies(context)
    after = context.globals["$json"]

    assert after is not before
    assert after.name == "second"
    assert before.name == "first"
    names = [call.args[0] for call in get_value.call_args_list]
    assert names.count(["$json", "name"]) == 2


def test_context_reset_and_scope(callbacks: Callbacks, remote: dict) -> None:
    remote[("$json", "id")] = 7
    context = _context(callbacks)
    context.reset()
    scope = context.scope()

    assert scope["$json"].id == 7
    assert scope.extend is context.data["extend"]
    assert scope["$nothing"] is undefined
    assert "$json" in scope
    with pytest.raises(AttributeError):
        scope.extend = None


def test_register_callbacks_replaces_primitives(get_value: Mock) -> None:
    context = EvaluationContext()
    context.register_callbacks(get_value_at_path=get_value)

    assert context.callbacks.get_value_at_path is get_value
    assert context.callbacks.call_function_at_path is None
    context.reset()
    assert "$json" in context.data


def test_failed_reset_drops_previous_globals(callbacks: Callbacks) -> None:
    context = _context(callbacks)
    reset_data_proxies(context)
    stale = context.globals["$json"]

    context.register_callbacks()
    with pytest.raises(CallbackNotRegisteredError):
        context.reset()

    for name in (*NAMESPACE_PROXIES, "$runIndex", "$itemIndex", "$items"):
        assert name not in context.globals
    assert stale not in context.globals.values()
    assert context.globals["__data"] is context.data
    assert "$json" not in context.data
