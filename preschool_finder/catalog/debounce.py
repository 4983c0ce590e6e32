from __future__ import annotations

import asyncio
from typing import Any, Callable


class Debouncer:
    """
    Coalesce rapid calls into one: each call restarts the quiet period and
    only the last pending invocation fires.

    Must be called from inside a running asyncio event loop.
    """

    def __init__(self, func: Callable[..., Any], wait_s: float = 0.3):
        self._func = func
        self._wait_s = wait_s
        self._handle: asyncio.TimerHandle | None = None
        self._pending: tuple[tuple, dict] | None = None

    @property
    def wait_s(self) -> float:
        return self._wait_s

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self.cancel()
        self._pending = (args, kwargs)
        self._handle = asyncio.get_running_loop().call_later(self._wait_s, self._fire)

    def _fire(self) -> None:
        if self._pending is None:
            return
        args, kwargs = self._pending
        self._handle = None
        self._pending = None
        self._func(*args, **kwargs)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending = None

    def flush(self) -> None:
        """Run the pending call now instead of waiting out the quiet period."""
        if self._handle is not None:
            self._handle.cancel()
        self._fire()
