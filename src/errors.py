"""
MeterHQ - Error Results
Typed success/error values returned by the request-level entry points.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar


T = TypeVar('T')


class ErrorKind(str, Enum):
    PARSE = 'parse'
    INVALID_INPUT = 'invalid_input'
    STORE = 'store'


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an error, never both."""
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> 'Result[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> 'Result[T]':
        return cls(error=ServiceError(kind, message))
