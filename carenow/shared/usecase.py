import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from .failures import Failure, ServerFailure
from .result import Result

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")


class NoParams:
    """Marker for use cases that take no input"""


NO_PARAMS = NoParams()


class UseCase(ABC, Generic[P, T]):
    """
    A single business operation.

    Subclasses implement ``execute`` and raise ``Failure`` subclasses for
    expected errors. Calling the use case always returns a ``Result``.
    """

    @abstractmethod
    def execute(self, params: P) -> T: ...

    def __call__(self, params: Any = NO_PARAMS) -> Result[T]:
        try:
            return Result.ok(self.execute(params))
        except Failure as failure:
            return Result.fail(failure)
        except Exception as e:
            logger.exception(f"❌ Unexpected error in {type(self).__name__}: {e}")
            return Result.fail(ServerFailure(f"Unexpected error: {e}"))


class AsyncUseCase(ABC, Generic[P, T]):
    """Same contract as ``UseCase`` for operations that await network calls"""

    @abstractmethod
    async def execute(self, params: P) -> T: ...

    async def __call__(self, params: Any = NO_PARAMS) -> Result[T]:
        try:
            return Result.ok(await self.execute(params))
        except Failure as failure:
            return Result.fail(failure)
        except Exception as e:
            logger.exception(f"❌ Unexpected error in {type(self).__name__}: {e}")
            return Result.fail(ServerFailure(f"Unexpected error: {e}"))
