"""In-process reference bridge between a host and the sandbox runtime.

The bridge keeps one evaluation context alive across evaluations and resets
its data proxies before each one. It expects expression code that has
already been compiled to a Python expression reading workflow data through
``this``, e.g. ``this["$json"].user.name``.

This bridge does not isolate anything. It exists to exercise the runtime
end to end; a real deployment substitutes its own sandbox.
"""

from __future__ import annotations

import time
from types import CodeType
from typing import Any, Mapping, Optional

from .errors import (
    EvaluationTimeoutError,
    ExpressionError,
    ExpressionSyntaxError,
    SandboxRuntimeError,
)
from .host import HostResolver
from .logging_config import get_logger
from .runtime import EvaluationContext
from .runtime.structured_accessor import materialize

_REQUIRED_GLOBALS = ("DateTime", "extend", "extendOptional", "__sanitize")


class BridgeConfig:
    __slots__ = ("timeout", "debug")

    def __init__(self, timeout: int = 5000, debug: bool = False) -> None:
        self.timeout = timeout
        self.debug = debug


class ExpressionBridge:
    """Evaluates compiled expressions against host-side workflow data."""

    def __init__(self, config: Optional[BridgeConfig] = None) -> None:
        self.config = config if config is not None else BridgeConfig()
        self._context: Optional[EvaluationContext] = None
        self._initialized = False
        self._disposed = False
        self._script_cache: dict[str, CodeType] = {}
        self._log = get_logger(__name__)

    def _debug(self, event: str, **kw: Any) -> None:
        if self.config.debug:
            self._log.debug(event, **kw)

    def initialize(self) -> None:
        if self._disposed:
            raise ExpressionError("Bridge has been disposed")
        if self._initialized:
            return
        self._context = EvaluationContext()
        self._verify_runtime()
        self._initialized = True
        self._debug("bridge_initialized")

    def _require_context(self) -> EvaluationContext:
        if self._context is None:
            raise ExpressionError("Bridge not initialized. Call initialize() first.")
        return self._context

    def _verify_runtime(self) -> None:
        context = self._require_context()
        missing = [name for name in _REQUIRED_GLOBALS if name not in context.globals]
        if missing:
            raise ExpressionError(f"Runtime verification failed: missing {', '.join(missing)}")

    def _register_callbacks(self, data: Mapping[str, Any]) -> None:
        context = self._require_context()
        resolver = HostResolver(data)
        context.register_callbacks(
            get_value_at_path=resolver.get_value_at_path,
            get_array_element=resolver.get_array_element,
            call_function_at_path=resolver.call_function_at_path,
        )
        self._debug("callbacks_registered")

    def _reset_data_proxies(self) -> None:
        context = self._require_context()
        try:
            context.reset()
        except Exception as exc:
            raise ExpressionError(f"Failed to reset data proxies: {exc}") from exc
        self._debug("data_proxies_reset")

    def _compile(self, code: str) -> CodeType:
        script = self._script_cache.get(code)
        if script is None:
            try:
                script = compile(code.strip(), "<expression>", "eval")
            except SyntaxError as exc:
                raise ExpressionSyntaxError(
                    f"Invalid expression syntax: {exc.msg}", {"expression": code}
                ) from exc
            self._script_cache[code] = script
            self._debug("script_compiled", cached=len(self._script_cache))
        return script

    def execute(self, code: str, data: Mapping[str, Any]) -> Any:
        """Evaluate ``code`` against ``data`` and return a plain copy of the result."""
        if not self._initialized or self._context is None:
            raise ExpressionError("Bridge not initialized. Call initialize() first.")

        self._register_callbacks(data)
        self._reset_data_proxies()
        script = self._compile(code)

        context = self._context
        context.globals["this"] = context.scope()
        started = time.perf_counter()
        try:
            result = materialize(eval(script, context.globals))
        except ExpressionError:
            raise
        except SandboxRuntimeError as exc:
            raise exc.to_expression_error() from exc
        except Exception as exc:
            raise ExpressionError(
                f"Expression evaluation failed: {exc}", {"expression": code}
            ) from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > self.config.timeout:
            raise EvaluationTimeoutError(
                f"Expression timed out after {elapsed_ms:.0f}ms",
                {"expression": code, "timeout": self.config.timeout},
            )
        self._debug("expression_executed", elapsed_ms=round(elapsed_ms, 3))
        return result

    def dispose(self) -> None:
        if self._disposed:
            return
        self._context = None
        self._script_cache.clear()
        self._disposed = True
        self._initialized = False
        self._debug("bridge_disposed")

    def is_disposed(self) -> bool:
        return self._disposed
