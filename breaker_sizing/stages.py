from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from breaker_sizing.errors import BreakerSizingError

T = TypeVar("T")

# Failures an optional stage may absorb; anything else is a bug and propagates
RECOVERABLE_ERRORS = (BreakerSizingError, ValueError, ArithmeticError)


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of an optional pipeline stage: a value or the error that skipped it."""
    name: str
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_optional_stage(name: str, fn: Callable[..., T], *args: Any) -> StageResult[T]:
    try:
        return StageResult(name=name, value=fn(*args))
    except RECOVERABLE_ERRORS as exc:
        return StageResult(name=name, error=exc)
