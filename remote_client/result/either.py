"""Either type: the return value of every public client operation.

`Left` carries a failure, `Right` carries a success value. Callers branch on
the result instead of catching exceptions.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar


L = TypeVar("L")
R = TypeVar("R")
T = TypeVar("T")


class Either(Generic[L, R]):
    """Base class for `Left` and `Right`. Not instantiated directly."""

    __slots__ = ()

    @property
    def is_left(self) -> bool:
        """Check if this is a `Left`."""
        return isinstance(self, Left)

    @property
    def is_right(self) -> bool:
        """Check if this is a `Right`."""
        return isinstance(self, Right)

    @property
    def left(self) -> L:
        """Left value.

        Raises:
            ValueError: If this is a `Right`.
        """
        if isinstance(self, Left):
            return self.value
        msg = "Illegal use. Check is_left before reading left"
        raise ValueError(msg)

    @property
    def right(self) -> R:
        """Right value.

        Raises:
            ValueError: If this is a `Left`.
        """
        if isinstance(self, Right):
            return self.value
        msg = "Illegal use. Check is_right before reading right"
        raise ValueError(msg)

    def fold(self, on_left: Callable[[L], T], on_right: Callable[[R], T]) -> T:
        """Collapse both branches into a single value."""
        if isinstance(self, Left):
            return on_left(self.value)
        if isinstance(self, Right):
            return on_right(self.value)
        msg = f"Unknown Either subtype: {type(self).__name__}"
        raise TypeError(msg)

    def map(self, fn: Callable[[R], T]) -> "Either[L, T]":
        """Transform the right value."""
        return self.fold(Left, lambda value: Right(fn(value)))

    def map_left(self, fn: Callable[[L], T]) -> "Either[T, R]":
        """Transform the left value."""
        return self.fold(lambda value: Left(fn(value)), Right)

    def flat_map(self, fn: "Callable[[R], Either[L, T]]") -> "Either[L, T]":
        """Chain a computation that itself returns an Either."""
        return self.fold(Left, fn)

    def get_or_else(self, default: Callable[[], R]) -> R:
        """Right value, or the result of `default` for a Left."""
        return self.fold(lambda _: default(), lambda value: value)

    def get_or_none(self) -> R | None:
        """Right value or None."""
        return self.fold(lambda _: None, lambda value: value)

    def get_left_or_none(self) -> L | None:
        """Left value or None."""
        return self.fold(lambda value: value, lambda _: None)

    def or_else(self, alternative: "Callable[[], Either[L, R]]") -> "Either[L, R]":
        """Keep a Right; replace a Left with `alternative()`."""
        return self.fold(lambda _: alternative(), lambda _: self)

    def tap(self, fn: Callable[[R], Any]) -> "Either[L, R]":
        """Run a side effect on the right value."""
        if isinstance(self, Right):
            fn(self.value)
        return self

    def tap_left(self, fn: Callable[[L], Any]) -> "Either[L, R]":
        """Run a side effect on the left value."""
        if isinstance(self, Left):
            fn(self.value)
        return self

    def swap(self) -> "Either[R, L]":
        """Exchange the branches."""
        return self.fold(Right, Left)


@dataclass(frozen=True, slots=True)
class Left(Either[L, R]):
    """Failure branch."""

    value: L

    def __repr__(self) -> str:
        return f"Left({self.value!r})"


@dataclass(frozen=True, slots=True)
class Right(Either[L, R]):
    """Success branch."""

    value: R

    def __repr__(self) -> str:
        return f"Right({self.value!r})"
