"""Explicit result type for billing service calls.

The billing service reports failures as a value (`{"error": "..."}`) rather
than an HTTP exception. Clients translate those bodies into `ServiceError` at
the transport boundary so callers branch on the type, not the shape.
"""

from dataclasses import dataclass
from typing import Generic, TypeGuard, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful service call carrying its value."""

    value: T


@dataclass(frozen=True)
class ServiceError:
    """Service-level failure with a user-facing message."""

    error: str


ServiceResult = Union[Success[T], ServiceError]


def is_service_error(result: object) -> TypeGuard[ServiceError]:
    """Return True if a service result is the error variant."""
    return isinstance(result, ServiceError)
