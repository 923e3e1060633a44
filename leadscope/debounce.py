"""Debounced values - settle after the input has been quiet for a while."""

import asyncio
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    A value that only updates once its input stops changing.

    set() arms a timer; every newer set() cancels the previous one, so
    only the latest value ever settles. is_settling is True from the
    first set() until the settled value catches up.

    Timers run on the asyncio loop, so set() must be called from a
    running loop.
    """

    def __init__(
        self,
        value: T,
        delay_ms: int = 300,
        on_settle: Optional[Callable[[T], Any]] = None,
    ):
        self.value = value
        self.delay_ms = delay_ms
        self.on_settle = on_settle
        self.is_settling = False

        self._generation = 0
        self._pending: Optional[T] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._settled = asyncio.Event()
        self._settled.set()

    def set(self, value: T) -> None:
        """Feed a new input value."""
        self._cancel_timer()
        self._generation += 1
        self._pending = value
        self.is_settling = True
        self._settled.clear()

        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(
            self.delay_ms / 1000, self._settle, self._generation
        )

    def flush(self) -> None:
        """Settle the pending value now."""
        if self.is_settling:
            self._cancel_timer()
            self._settle(self._generation)

    def cancel(self) -> None:
        """Drop the pending value; the settled value stays as it was."""
        self._cancel_timer()
        self._generation += 1
        self._pending = None
        self.is_settling = False
        self._settled.set()

    async def wait(self) -> T:
        """Wait for the current input to settle and return it."""
        await self._settled.wait()
        return self.value

    def _settle(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._handle = None
        self.value = self._pending
        self._pending = None
        self.is_settling = False
        self._settled.set()
        if self.on_settle is not None:
            self.on_settle(self.value)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
