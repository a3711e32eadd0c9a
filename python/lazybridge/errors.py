"""Exceptions raised while evaluating expressions."""

from __future__ import annotations

from typing import Any, Optional


class ExpressionError(Exception):
    """Base class for errors surfaced to the user as expression errors."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.context: dict[str, Any] = dict(context or {})


class MemoryLimitError(ExpressionError):
    pass


class EvaluationTimeoutError(ExpressionError):
    pass


class SecurityViolationError(ExpressionError):
    pass


class ExpressionSyntaxError(ExpressionError):
    pass


class SandboxRuntimeError(Exception):
    """Error thrown from inside the sandbox, tagged with a translation code.

    ``code`` is one of ``MEMORY_LIMIT``, ``TIMEOUT``, ``SECURITY_VIOLATION``,
    ``SYNTAX_ERROR``; anything else maps to a plain ``ExpressionError``.
    """

    def __init__(
        self, message: str, code: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details

    def to_expression_error(self) -> ExpressionError:
        cls = _ERROR_CODES.get(self.code, ExpressionError)
        return cls(str(self), {"code": self.code, **(self.details or {})})


class CallbackNotRegisteredError(RuntimeError):
    """A boundary primitive was used before the host registered it."""


class ExpressionExtensionError(Exception):
    def __init__(self, message: str, description: Optional[str] = None) -> None:
        super().__init__(message)
        self.description = description


_ERROR_CODES: dict[str, type[ExpressionError]] = {
    "MEMORY_LIMIT": MemoryLimitError,
    "TIMEOUT": EvaluationTimeoutError,
    "SECURITY_VIOLATION": SecurityViolationError,
    "SYNTAX_ERROR": ExpressionSyntaxError,
}
