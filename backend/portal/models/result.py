"""
Discriminated result returned by every public session and client operation.

Callers render `error` inline instead of wrapping calls in try/except:

    result = await ctx.drive.rename(file_id, "notes.pdf")
    if not result.success:
        show_banner(result.error)
"""
import functools
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

from portal.utils.errors import AppError, RequestFailedError
from portal.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Result(BaseModel, Generic[T]):
    """Success flag plus either data or an error description."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: Exception) -> "Result":
        if isinstance(error, AppError):
            status = error.status if isinstance(error, RequestFailedError) else None
            return cls(success=False, error=error.message, code=error.code, status=status)
        return cls(success=False, error=str(error) or error.__class__.__name__, code="UNKNOWN_ERROR")


def result_boundary(action: str) -> Callable:
    """
    Decorate an async operation so failures come back as `Result.fail`.

    The wrapped coroutine returns plain data (or a Result, passed through);
    AppError subclasses become failed results with their code, anything
    else is logged with a traceback and reported by message.
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Result]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Result:
            try:
                value = await func(*args, **kwargs)
            except AppError as e:
                logger.warning(f"{action} failed: {e.message}")
                return Result.fail(e)
            except Exception as e:
                logger.exception(f"{action} failed unexpectedly")
                return Result.fail(e)

            if isinstance(value, Result):
                return value
            return Result.ok(value)

        return wrapper
    return decorator
