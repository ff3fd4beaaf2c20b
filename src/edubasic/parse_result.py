"""
Two-variant parse outcome.

Statement and expression parsers return a ParseResult instead of raising,
so a failed sub-parse aborts the enclosing statement with one diagnostic
while the rest of the program keeps parsing.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Either success(value) or failure(error).

    Attributes:
        value: The parsed value (None on failure)
        error: The failure message (None on success)
    """
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok
