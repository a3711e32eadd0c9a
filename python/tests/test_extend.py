from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from lazybridge.errors import ExpressionExtensionError, SecurityViolationError
from lazybridge.runtime.callbacks import Callbacks
from lazybridge.runtime.date_time import DateTime
from lazybridge.runtime.extend import extend, extend_optional
from lazybridge.runtime.lazy_proxy import create_deep_lazy_proxy
from lazybridge.runtime.metadata import array_marker, object_marker
from lazybridge.runtime.sanitize import sanitize
from lazybridge.runtime.undefined import undefined


@pytest.mark.parametrize(
    ("value", "name", "args", "expected"),
    [
        ("ann@example.com", "isEmail", [], True),
        ("not an email", "isEmail", [], False),
        ("", "isEmpty", [], True),
        ("x", "isNotEmpty", [], True),
        ("hello wORLD", "toTitleCase", [], "Hello World"),
        ("https://n8n.io/path", "extractDomain", [], "n8n.io"),
        ("42", "toNumber", [], 42),
        ("1.5", "toNumber", [], 1.5),
        (2.346, "round", [2], 2.35),
        (2.5, "round", [], 3),
        (4, "isEven", [], True),
        (3, "isOdd", [], True),
        (0, "toBoolean", [], False),
        (True, "toNumber", [], 1),
        ([1, 2, 3], "first", [], 1),
        ([1, 2, 3], "last", [], 3),
        ([], "first", [], undefined),
        ([1, "a", 2.5], "sum", [], 3.5),
        ([1, 1, 2], "unique", [], [1, 2]),
        ([0, None, "", "a"], "compact", [], [0, "a"]),
        ([{"a": 1}, {"a": 2}, 3], "pluck", ["a"], [1, 2]),
        ({"a": 1, "b": None}, "keys", [], ["a", "b"]),
        ({"a": 1, "b": None}, "values", [], [1, None]),
        ({"a": 1}, "hasField", ["a"], True),
        ({"a": 1, "b": None}, "compact", [], {"a": 1}),
        ({}, "isEmpty", [], True),
        ("abc", "upper", [], "ABC"),
        ([3, 1], "index", [1], 1),
    ],
)
def test_extend(value: Any, name: str, args: list, expected: Any) -> None:
    assert extend(value, name, args) == expected


def test_iso_strings_dispatch_to_date_extensions() -> None:
    assert extend("2024-03-02T10:30:00.000Z", "isWeekend", []) is True
    start = extend("2024-03-06T10:30:00.000Z", "beginningOf", ["week"])
    assert start.toISO() == "2024-03-04T00:00:00.000+00:00"


def test_to_date_time_from_string_and_millis() -> None:
    parsed = extend("2024-03-02T10:30:00.000Z", "toDateTime", [])
    assert isinstance(parsed, DateTime)
    assert parsed.toMillis() == 1709375400000
    assert extend(1709375400000, "toDateTime", []) == parsed


def test_date_time_arithmetic() -> None:
    start = DateTime.fromISO("2024-01-31T00:00:00.000Z")

    assert start.plus(months=1).toISO() == "2024-02-29T00:00:00.000+00:00"
    assert start.minus(days=1, milliseconds=500).toISO() == "2024-01-29T23:59:59.500+00:00"
    assert isinstance(start.plus(hours=1), DateTime)
    assert DateTime.isDateTime(start)
    assert not DateTime.isDateTime(datetime(2024, 1, 1, tzinfo=timezone.utc))
    assert str(start) == "2024-01-31T00:00:00.000+00:00"


def test_extensions_read_lazy_proxies() -> None:
    table = {
        ("$json",): object_marker(["tags", "name"]),
        ("$json", "tags"): array_marker(2),
        ("$json", "name"): "",
        ("$json", "tags", 0): "x",
        ("$json", "tags", 1): "y",
    }

    def resolve(path: list, *rest: Any) -> Any:
        return table.get(tuple(path) + rest, undefined)

    proxy = create_deep_lazy_proxy(
        Callbacks(get_value_at_path=resolve, get_array_element=resolve), ("$json",)
    )

    assert extend(proxy, "keys", []) == ["tags", "name"]
    assert extend(proxy.tags, "last", []) == "y"
    assert extend(proxy.tags, "unique", []) == ["x", "y"]
    assert extend(proxy, "compact", []) == {"tags": proxy.tags}
    assert extend(proxy, "isNotEmpty", []) is True


@pytest.mark.parametrize(
    ("value", "message"),
    [
        (None, 'isEmail() could not be called on "null" type'),
        (undefined, 'isEmail() could not be called on "undefined" type'),
    ],
)
def test_extend_on_missing_value(value: Any, message: str) -> None:
    with pytest.raises(ExpressionExtensionError) as excinfo:
        extend(value, "isEmail", [])
    assert str(excinfo.value) == message
    assert excinfo.value.description


def test_extend_wrong_type_lists_owners() -> None:
    with pytest.raises(ExpressionExtensionError, match=r'isEmail\(\) is only callable on type "string"'):
        extend(5, "isEmail", [])
    with pytest.raises(ExpressionExtensionError, match=r'first\(\) is only callable on type "array"'):
        extend("abc", "first", [])
    with pytest.raises(ExpressionExtensionError, match=r'toDateTime\(\) is only callable on types'):
        extend({"a": 1}, "toDateTime", [])


def test_extend_unknown_function() -> None:
    with pytest.raises(ExpressionExtensionError, match="Unknown expression function: nope"):
        extend("abc", "nope", [])


def test_to_number_rejects_text() -> None:
    with pytest.raises(ExpressionExtensionError) as excinfo:
        extend("abc", "toNumber", [])
    assert excinfo.value.description == '"abc" is not numeric'


def test_extend_optional() -> None:
    assert extend_optional("abc", "nope") is undefined
    assert extend_optional("a@b.co", "isEmail")() is True
    assert extend_optional("abc", "upper")() == "ABC"
    assert extend_optional(None, "isEmpty")() is True


@pytest.mark.parametrize("name", ["__proto__", "prototype", "constructor", "__class__", "_load"])
def test_sanitize_rejects_unsafe_names(name: str) -> None:
    with pytest.raises(SecurityViolationError, match="due to security concerns") as excinfo:
        sanitize(name)
    assert excinfo.value.context == {"property": name}


@pytest.mark.parametrize("name", ["name", "__isProxy", 3])
def test_sanitize_allows_plain_names(name: Any) -> None:
    assert sanitize(name) == name
