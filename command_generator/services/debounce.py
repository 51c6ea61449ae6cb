"""
Debounced writes.

Coalesces rapid successive saves into one: every schedule() replaces the
pending payload and restarts the idle timer, so only the last payload of a
burst is written. Without a running event loop there is no timer: the write
happens at once, or, when the writer is built with defer_without_loop=True,
the payload is held until the caller invokes flush().
Losing a pending write (process exit before the timer fires) is acceptable.
"""

import asyncio
import logging
from typing import Callable, Generic, Optional, TypeVar

from ..config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebouncedWriter(Generic[T]):
    def __init__(
        self,
        write: Callable[[T], object],
        delay: Optional[float] = None,
        defer_without_loop: bool = False,
    ):
        self._write = write
        self.defer_without_loop = defer_without_loop
        self.delay = settings.DRAFT_SAVE_DELAY if delay is None else delay
        self._payload: Optional[T] = None
        self._has_pending = False
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._has_pending

    def schedule(self, payload: T):
        self._payload = payload
        self._has_pending = True
        self._cancel_timer()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if not self.defer_without_loop:
                self.flush()
            return
        self._handle = loop.call_later(self.delay, self.flush)

    def flush(self) -> bool:
        """Write the pending payload now. Returns False when nothing was pending."""
        self._cancel_timer()
        if not self._has_pending:
            return False
        payload = self._payload
        self._payload = None
        self._has_pending = False
        self._write(payload)
        logger.debug("Flushed debounced write")
        return True

    def cancel(self):
        """Drop the pending payload without writing it."""
        self._cancel_timer()
        self._payload = None
        self._has_pending = False

    def _cancel_timer(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
