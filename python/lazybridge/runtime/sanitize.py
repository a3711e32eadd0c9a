from __future__ import annotations

from ..errors import SecurityViolationError

_UNSAFE_PROPERTIES = frozenset(
    {
        "__proto__",
        "prototype",
        "constructor",
        "getPrototypeOf",
        "mainModule",
        "binding",
        "_load",
    }
)


def sanitize(name):
    """Guard a computed member name before compiled code dereferences it."""
    key = name if isinstance(name, str) else str(name)
    if key in _UNSAFE_PROPERTIES or (key.startswith("__") and key.endswith("__")):
        raise SecurityViolationError(
            f'Cannot access "{key}" due to security concerns',
            {"property": key},
        )
    return name
