"""Errors raised by the stream façade."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class StreamError(Exception):
    """Base class for stream errors."""


class CodecUnsupportedError(StreamError):
    """The requested codec is not supported."""

    def __init__(self, message: str = "unsupported codec") -> None:
        super().__init__(message)


class OperationTimeoutError(StreamError):
    """An operation did not finish in time."""

    def __init__(self, message: str = "operation timeout") -> None:
        super().__init__(message)


class MultiErr(StreamError):
    """A simple accumulator of errors that is itself an error.

    It is not synchronised; use it from a single thread.
    """

    def __init__(self, errors: Iterable[BaseException | None] = ()) -> None:
        super().__init__()
        self._errors: list[BaseException | None] = list(errors)

    def add(self, err: BaseException | None) -> None:
        """Append an error (``None`` included, as given)."""
        self._errors.append(err)

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[BaseException | None]:
        return iter(self._errors)

    def __getitem__(self, index: int) -> BaseException | None:
        return self._errors[index]

    def __str__(self) -> str:
        if not self._errors:
            return ""
        if len(self._errors) == 1:
            return str(self._errors[0])
        return "multiple errors:" + "".join(f"\n - {err}" for err in self._errors)