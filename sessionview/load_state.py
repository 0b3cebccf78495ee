"""
LoadState - Lifecycle of an Asynchronous Fetch

A fetch is always in one of three states:

    Loading          nothing usable yet
    Loaded(value)    the latest successfully produced value
    Error(cause)     the producer failed; the sequence ends here

``to_load_state`` wraps any async stream into that sequence so that failures
travel as values instead of exceptions.
"""

from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Generic, Optional, TypeVar

T = TypeVar("T")


class LoadState(Generic[T]):
    """Base of the three load states."""

    __slots__ = ()

    @property
    def is_loading(self) -> bool:
        return False

    def get_error_if_exists(self) -> Optional[BaseException]:
        return None

    def get_value_or(self, default: Any) -> Any:
        return default


@dataclass(frozen=True)
class Loading(LoadState[T]):
    @property
    def is_loading(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "Loading"


@dataclass(frozen=True)
class Loaded(LoadState[T]):
    value: T

    def get_value_or(self, default: Any) -> Any:
        return self.value


@dataclass(frozen=True)
class Error(LoadState[T]):
    cause: BaseException

    def get_error_if_exists(self) -> Optional[BaseException]:
        return self.cause


LOADING: Loading = Loading()

# Valueless "finished" state, used by actions with no result
DONE: Loaded = Loaded(None)


async def to_load_state(source: AsyncIterable[T]) -> AsyncIterator[LoadState[T]]:
    """
    Wrap an async stream into its LoadState sequence.

    Yields ``LOADING`` first, then ``Loaded(item)`` for every upstream item.
    If the upstream raises, a single ``Error(cause)`` is yielded and the
    sequence ends. Cancellation is not captured.
    """
    yield LOADING
    try:
        async for item in source:
            yield Loaded(item)
    except Exception as e:
        yield Error(e)


__all__ = [
    "LoadState",
    "Loading",
    "Loaded",
    "Error",
    "LOADING",
    "DONE",
    "to_load_state",
]
