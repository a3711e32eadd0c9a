"""Per-evaluation reset of the data proxies.

Runs once right before each expression is evaluated. Every proxy from the
previous evaluation is dropped and a fresh root namespace map is built, so
no cached value can leak from one evaluation into the next.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..errors import CallbackNotRegisteredError
from .callbacks import Callbacks
from .helpers import PUBLISHED_HELPERS, helper
from .lazy_proxy import create_deep_lazy_proxy, make_function_wrapper
from .metadata import is_function_marker, marker_name
from .undefined import undefined

if TYPE_CHECKING:
    from .context import EvaluationContext

# Subtrees: one lazy root proxy each.
NAMESPACE_PROXIES = (
    "$json",
    "$binary",
    "$input",
    "$node",
    "$parameter",
    "$workflow",
    "$prevNode",
    "$data",
    "$env",
)

# Cheap scalars, fetched eagerly and optional.
SCALAR_GLOBALS = ("$runIndex", "$itemIndex")

CALLABLE_GLOBAL = "$items"


def _fetch_optional(callbacks: Callbacks, name: str) -> Any:
    try:
        return callbacks.value_at_path((name,))
    except Exception:
        return undefined


def reset_data_proxies(context: EvaluationContext) -> None:
    data: dict[str, Any] = {}
    # The member-access sanitizer in compiled code is looked up on the data scope.
    data["__sanitize"] = helper("__sanitize")

    # Nothing from the previous evaluation stays published, even on failure.
    context.data = data
    for name in (*NAMESPACE_PROXIES, *SCALAR_GLOBALS, CALLABLE_GLOBAL):
        context.globals.pop(name, None)
    context.globals["__data"] = data

    callbacks = context.callbacks
    if callbacks.get_value_at_path is None:
        raise CallbackNotRegisteredError("get_value_at_path callback not registered")

    for name in NAMESPACE_PROXIES:
        data[name] = create_deep_lazy_proxy(callbacks, (name,))

    for name in SCALAR_GLOBALS:
        data[name] = _fetch_optional(callbacks, name)

    if callbacks.call_function_at_path is not None:
        value = _fetch_optional(callbacks, CALLABLE_GLOBAL)
        if is_function_marker(value):
            value = make_function_wrapper(callbacks, (CALLABLE_GLOBAL,), marker_name(value))
        data[CALLABLE_GLOBAL] = value

    context.globals.update((name, value) for name, value in data.items() if name.startswith("$"))

    for name in PUBLISHED_HELPERS:
        data[name] = helper(name)
