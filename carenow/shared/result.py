"""Success-or-failure container returned by every use case"""

from typing import Any, Callable, Generic, Optional, TypeVar

from .failures import Failure

T = TypeVar("T")
R = TypeVar("R")


class Result(Generic[T]):
    __slots__ = ("_value", "_failure")

    def __init__(self, value: Optional[T] = None, failure: Optional[Failure] = None):
        self._value = value
        self._failure = failure

    @classmethod
    def ok(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure) -> "Result[Any]":
        return cls(failure=failure)

    @property
    def is_success(self) -> bool:
        return self._failure is None

    @property
    def is_failure(self) -> bool:
        return self._failure is not None

    @property
    def value(self) -> Optional[T]:
        return self._value

    @property
    def failure(self) -> Optional[Failure]:
        return self._failure

    def unwrap(self) -> T:
        """Return the value, or raise the failure."""
        if self._failure is not None:
            raise self._failure
        return self._value

    def fold(self, on_failure: Callable[[Failure], R], on_success: Callable[[T], R]) -> R:
        if self._failure is not None:
            return on_failure(self._failure)
        return on_success(self._value)

    def __repr__(self):
        if self._failure is not None:
            return f"Result.fail({self._failure!r})"
        return f"Result.ok({self._value!r})"
