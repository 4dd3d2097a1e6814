"""
Result envelope for consistent success/failure handling.

Stages in a Trust Debt run must keep going when a predecessor failed, so
loading an upstream artifact returns ``Ok[T]`` or ``Err[T]`` instead of raising.
Callers decide whether an ``Err`` is fatal for them or whether a default is
good enough.

Manifesto:
    - **Explicit over implicit:** A missing artifact is a value, not a crash
    - **Composable:** ``map`` / ``and_then`` chain loaders without nested try/except
    - **Serializable:** ``to_dict()`` feeds straight into reports

Examples:
    >>> Ok(3).map(lambda v: v * 2).unwrap()
    6
    >>> Err(ValueError("bad")).unwrap_or(0)
    0
    >>> try_result(lambda: int("x")).is_err()
    True

Tags:
    result-type, error-handling, functional, trustdebt-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from trustdebt.core.errors import TrustDebtError


T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get value or default (always returns value for Ok)."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value if Ok."""
        return Ok(f(self.value))

    def and_then(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """Chain to another Result-returning function."""
        return f(self.value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing the exception that caused it."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the contained error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """Return the default (always, for Err)."""
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def and_then(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        if isinstance(self.error, TrustDebtError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Type alias for Result
Result = Ok[T] | Err[T]


def try_result(f: Callable[[], T]) -> Result[T]:
    """
    Execute a zero-argument callable and wrap the outcome in a Result.

    Args:
        f: Callable that may raise

    Returns:
        Ok with the return value, or Err with the raised exception
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)
