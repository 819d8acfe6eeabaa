"""Error model of the tokenizer.

Inside the engine, problems are raised as exceptions derived from `TokenizerError`.
The public `HFTokenizer` methods catch them and hand back an `Error` code (for
`load`) or a `Result` (for `encode` and `decode`), so a caller never has to wrap a
tokenizer call in try/except.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class Error(IntEnum):
    OK = 0
    UNINITIALIZED = 1
    LOAD_FAILURE = 2
    ENCODE_FAILURE = 3
    DECODE_FAILURE = 4


class TokenizerError(ValueError):
    """Base class for errors raised inside the engine."""

    error = Error.LOAD_FAILURE


class LoadError(TokenizerError):
    error = Error.LOAD_FAILURE


class EncodeError(TokenizerError):
    error = Error.ENCODE_FAILURE


class DecodeError(TokenizerError):
    error = Error.DECODE_FAILURE


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value (when `error` is `Error.OK`) or an error code."""

    value: T | None = None
    err: Error = Error.OK

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, err: Error) -> "Result[T]":
        if err == Error.OK:
            raise ValueError("A failed result needs an error code other than OK!")
        return cls(err=err)

    def ok(self) -> bool:
        return self.err == Error.OK

    def error(self) -> Error:
        return self.err

    def get(self) -> T:
        if not self.ok():
            raise ValueError(f"Result holds no value, error: {self.err.name}")
        return self.value
