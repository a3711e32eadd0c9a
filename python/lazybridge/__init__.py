from __future__ import annotations

from .bridge import BridgeConfig, ExpressionBridge
from .errors import (
    CallbackNotRegisteredError,
    EvaluationTimeoutError,
    ExpressionError,
    ExpressionExtensionError,
    ExpressionSyntaxError,
    MemoryLimitError,
    SandboxRuntimeError,
    SecurityViolationError,
)
from .host import HostResolver
from .runtime import (
    ArrayProxy,
    Callbacks,
    EvaluationContext,
    LazyProxy,
    create_deep_lazy_proxy,
    reset_data_proxies,
    undefined,
)


def _resolve_version() -> str:
    try:
        from importlib.metadata import version

        return version("lazybridge")
    except Exception:  # pragma: no cover - during development
        return "0.0.0"


def __getattr__(name: str):
    if name == "__version__":
        value = _resolve_version()
        globals()["__version__"] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + ["__version__"])


__all__ = [
    "ArrayProxy",
    "BridgeConfig",
    "CallbackNotRegisteredError",
    "Callbacks",
    "EvaluationContext",
    "EvaluationTimeoutError",
    "ExpressionBridge",
    "ExpressionError",
    "ExpressionExtensionError",
    "ExpressionSyntaxError",
    "HostResolver",
    "LazyProxy",
    "MemoryLimitError",
    "SandboxRuntimeError",
    "SecurityViolationError",
    "create_deep_lazy_proxy",
    "reset_data_proxies",
    "undefined",
    "__version__",
]
