"""Uniform result type returned by every repository call.

A :data:`Result` is exactly one of:

* :class:`Success` — the call completed and carries a value.
* :class:`Error` — the call failed; ``message`` says why.
* :class:`Loading` — emitted by polling helpers before a query completes.
  It is never the final value of a call.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from momoapi.core.models import ErrorResponse

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """A completed call and its value."""

    value: T


@dataclass(frozen=True)
class Error:
    """A failed call.

    Attributes:
        message: ``"<status> <reason>"`` for HTTP failures, the exception
            message for transport faults.
        error_response: The provider's error body, when one was returned.
    """

    message: str
    error_response: ErrorResponse | None = None


@dataclass(frozen=True)
class Loading:
    """A call that is still in progress."""


Result = Union[Success[T], Error, Loading]
