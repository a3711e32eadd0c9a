"""Expression extension functions.

Compiled expressions turn ``value.fn(a, b)`` into ``extend(value, "fn", [a, b])``
when ``fn`` may be an extension. Extensions are looked up per value type,
then on the value itself ("native"), then among the generic extensions.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, Optional

from ..errors import ExpressionExtensionError
from .date_time import DateTime
from .lazy_proxy import ArrayProxy, LazyProxy, proxy_keys
from .undefined import undefined

Extension = Callable[[Any, list], Any]

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}.\d{3}Z")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ExtensionMap:
    __slots__ = ("type_name", "functions")

    def __init__(self, type_name: str, functions: dict[str, Extension]) -> None:
        self.type_name = type_name
        self.functions = functions


def _elements(value: Any) -> list:
    if isinstance(value, ArrayProxy):
        return [value[i] for i in range(len(value))]
    return list(value)


def _keys(value: Any) -> list[str]:
    if isinstance(value, LazyProxy):
        return proxy_keys(value)
    return list(value)


def _arg(args: list, index: int, default: Any = None) -> Any:
    return args[index] if len(args) > index else default


def _is_empty(value: Any, args: list = ()) -> bool:
    if value is None or value is undefined:
        return True
    if isinstance(value, LazyProxy):
        return not proxy_keys(value)
    return not value


def _is_not_empty(value: Any, args: list = ()) -> bool:
    return not _is_empty(value)


def _first(value, args):
    return value[0] if len(value) else undefined


def _last(value, args):
    return value[len(value) - 1] if len(value) else undefined


def _sum(value, args):
    return sum(v for v in _elements(value) if isinstance(v, (int, float)))


def _unique(value, args):
    seen: list = []
    for item in _elements(value):
        if item not in seen:
            seen.append(item)
    return seen


def _compact_list(value, args):
    return [v for v in _elements(value) if v is not None and v is not undefined and v != ""]


def _field(item, field):
    if isinstance(item, LazyProxy):
        return item[field]
    return item.get(field, undefined)


def _pluck(value, args):
    fields = list(args)
    out = []
    for item in _elements(value):
        if not isinstance(item, (Mapping, LazyProxy)):
            continue
        if len(fields) == 1:
            out.append(_field(item, fields[0]))
        else:
            out.append({field: _field(item, field) for field in fields})
    return out


def _to_title_case(value, args):
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.split(" "))


def _extract_domain(value, args):
    if "@" in value:
        return value.rsplit("@", 1)[1]
    match = re.match(r"^(?:[a-z][a-z0-9+.-]*://)?([^/:?#]+)", value, re.IGNORECASE)
    return match.group(1) if match else undefined


def _to_number(value, args):
    try:
        number = float(value)
    except ValueError as exc:
        raise ExpressionExtensionError(
            "cannot convert to number", description=f'"{value}" is not numeric'
        ) from exc
    return int(number) if number.is_integer() else number


def _to_date_time(value, args):
    if isinstance(value, datetime):
        return DateTime._coerce(value)
    return DateTime.fromISO(value)


def _round(value, args):
    decimals = _arg(args, 0, 0)
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor if decimals else math.floor(value + 0.5)


def _is_even(value, args):
    if not float(value).is_integer():
        raise ExpressionExtensionError("isEven() is only callable on integers")
    return int(value) % 2 == 0


def _is_odd(value, args):
    if not float(value).is_integer():
        raise ExpressionExtensionError("isOdd() is only callable on integers")
    return int(value) % 2 == 1


def _has_field(value, args):
    return _arg(args, 0) in value


def _compact_object(value, args):
    return {
        key: value[key]
        for key in _keys(value)
        if value[key] is not None and value[key] is not undefined and value[key] != ""
    }


def _is_weekend(value, args):
    return value.weekday() >= 5


def _beginning_of(value, args):
    unit = _arg(args, 0, "week")
    value = DateTime._coerce(value)
    start = DateTime._coerce(value.replace(hour=0, minute=0, second=0, microsecond=0))
    if unit == "day":
        return start
    if unit == "week":
        return start.minus(days=start.weekday())
    if unit == "month":
        return DateTime._coerce(start.replace(day=1))
    if unit == "year":
        return DateTime._coerce(start.replace(month=1, day=1))
    raise ExpressionExtensionError(f"beginningOf() does not support unit {unit!r}")


string_extensions = ExtensionMap(
    "string",
    {
        "isEmail": lambda value, args: bool(_EMAIL.match(value)),
        "isEmpty": _is_empty,
        "isNotEmpty": _is_not_empty,
        "toTitleCase": _to_title_case,
        "extractDomain": _extract_domain,
        "toNumber": _to_number,
        "toDateTime": _to_date_time,
    },
)

number_extensions = ExtensionMap(
    "number",
    {
        "round": _round,
        "isEven": _is_even,
        "isOdd": _is_odd,
        "toBoolean": lambda value, args: value != 0,
        "toDateTime": lambda value, args: DateTime.fromMillis(value),
    },
)

array_extensions = ExtensionMap(
    "array",
    {
        "first": _first,
        "last": _last,
        "sum": _sum,
        "unique": _unique,
        "compact": _compact_list,
        "pluck": _pluck,
        "isEmpty": _is_empty,
        "isNotEmpty": _is_not_empty,
    },
)

object_extensions = ExtensionMap(
    "object",
    {
        "keys": lambda value, args: _keys(value),
        "values": lambda value, args: [value[key] for key in _keys(value)],
        "hasField": _has_field,
        "compact": _compact_object,
        "isEmpty": _is_empty,
        "isNotEmpty": _is_not_empty,
    },
)

boolean_extensions = ExtensionMap(
    "boolean",
    {
        "toNumber": lambda value, args: 1 if value else 0,
    },
)

date_extensions = ExtensionMap(
    "date",
    {
        "isWeekend": _is_weekend,
        "beginningOf": _beginning_of,
        "toDateTime": _to_date_time,
    },
)

EXTENSION_OBJECTS = [
    array_extensions,
    date_extensions,
    number_extensions,
    object_extensions,
    string_extensions,
    boolean_extensions,
]

_GENERIC_EXTENSIONS: dict[str, Extension] = {
    "isEmpty": _is_empty,
    "isNotEmpty": _is_not_empty,
}


def _is_iso_date(value: Any) -> bool:
    if not isinstance(value, str) or not _ISO_DATE.fullmatch(value):
        return False
    try:
        DateTime.fromISO(value)
    except ValueError:
        return False
    return True


def _find_extended_function(value: Any, name: str):
    """Return ``(kind, function, value)`` or ``None``."""
    found: Optional[Extension] = None
    if isinstance(value, (list, tuple, ArrayProxy)):
        found = array_extensions.functions.get(name)
    elif _is_iso_date(value) and name not in ("toDate", "toDateTime"):
        value = DateTime.fromISO(value)
        found = date_extensions.functions.get(name)
    elif isinstance(value, str):
        found = string_extensions.functions.get(name)
    elif isinstance(value, bool):
        found = boolean_extensions.functions.get(name)
    elif isinstance(value, (int, float)):
        found = number_extensions.functions.get(name)
    elif isinstance(value, datetime):
        found = date_extensions.functions.get(name)
    elif isinstance(value, (Mapping, LazyProxy)):
        found = object_extensions.functions.get(name)

    if found is None:
        if value is not None and value is not undefined and not name.startswith("_"):
            native = getattr(value, name, None)
            if callable(native):
                return "native", native, value
        found = _GENERIC_EXTENSIONS.get(name)

    if found is None:
        return None
    return "extended", found, value


def _check_defined(value: Any, name: str) -> None:
    if value is None or value is undefined:
        shown = "null" if value is None else "undefined"
        raise ExpressionExtensionError(
            f'{name}() could not be called on "{shown}" type',
            description="You can only call functions on defined values",
        )


def extend(value: Any, name: str, args: list) -> Any:
    """Call extension ``name`` on ``value`` with ``args``."""
    found = _find_extended_function(value, name)
    if found is None:
        _check_defined(value, name)
        have = [ext for ext in EXTENSION_OBJECTS if name in ext.functions]
        if not have:
            raise ExpressionExtensionError(f"Unknown expression function: {name}")
        if len(have) > 1:
            last = f'"{have.pop().type_name}"'
            names = ", ".join(f'"{ext.type_name}"' for ext in have)
            raise ExpressionExtensionError(f"{name}() is only callable on types {names}, and {last}")
        raise ExpressionExtensionError(f'{name}() is only callable on type "{have[0].type_name}"')

    kind, function, value = found
    if kind == "native":
        return function(*args)
    return function(value, list(args))


def extend_optional(value: Any, name: str) -> Any:
    """Return a callable for extension ``name`` on ``value``, or ``undefined``."""
    found = _find_extended_function(value, name)
    if found is None:
        return undefined
    kind, function, value = found
    if kind == "native":
        return function

    def call(*args: Any) -> Any:
        return function(value, list(args))

    return call
