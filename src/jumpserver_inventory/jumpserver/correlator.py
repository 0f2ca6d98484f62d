"""Single-slot request/response correlation over the shared shell channel.

The bastion menu has no framing and no request ids: an exchange is "send one
keystroke, then wait until a prompt sentinel shows up in the accumulated
output". Only one exchange may be outstanding at a time.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..errors import ExchangeInProgressError, ExchangeTimeoutError, SessionStateError
from .dialect import DEFAULT_DIALECT, MenuDialect
from .sanitizer import strip_ansi

logger = logging.getLogger(__name__)

DEFAULT_EXCHANGE_TIMEOUT = 15.0


@dataclass
class PendingExchange:
    """The one in-flight exchange; settled exactly once."""

    command: str
    done: threading.Event = field(default_factory=threading.Event)
    output: Optional[str] = None
    error: Optional[BaseException] = None
    started_at: float = field(default_factory=time.monotonic)


class ExchangeCorrelator:
    """Owns the output buffer and the pending-exchange slot."""

    def __init__(
        self,
        dialect: MenuDialect = DEFAULT_DIALECT,
        *,
        timeout: float = DEFAULT_EXCHANGE_TIMEOUT,
    ) -> None:
        self.dialect = dialect
        self.timeout = timeout
        self._lock = threading.Lock()
        self._buffer = ""
        self._pending: Optional[PendingExchange] = None
        self._writer: Optional[Callable[[str], None]] = None

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def attach(self, writer: Callable[[str], None]) -> None:
        with self._lock:
            self._writer = writer

    def detach(self) -> None:
        with self._lock:
            self._writer = None

    def snapshot(self) -> str:
        with self._lock:
            return self._buffer

    def clear(self) -> None:
        with self._lock:
            self._buffer = ""

    def feed(self, chunk: str) -> None:
        """Data handler: sanitize, accumulate, resolve on a sentinel."""
        clean = strip_ansi(chunk)
        with self._lock:
            self._buffer += clean
            pending = self._pending
            if pending is None or not self.dialect.matches_exchange(self._buffer):
                return
            output = self._buffer
            self._buffer = ""
            self._pending = None
            pending.output = output
            pending.done.set()
        logger.debug(
            "Command end marker detected for %r, output length: %d",
            pending.command,
            len(output),
        )

    def fail(self, error: BaseException) -> bool:
        """Reject the pending exchange with ``error``; False if nothing was pending."""
        with self._lock:
            pending = self._pending
            if pending is None:
                return False
            self._pending = None
            self._buffer = ""
            pending.error = error
            pending.done.set()
        return True

    def run_exchange(self, command: str, *, timeout: Optional[float] = None) -> str:
        """Write ``command`` and block until a sentinel, an error or the deadline."""
        timeout = self.timeout if timeout is None else timeout
        with self._lock:
            if self._writer is None:
                raise SessionStateError("Shell stream is not available")
            if self._pending is not None:
                raise ExchangeInProgressError(
                    f"Cannot send {command!r} while {self._pending.command!r} is pending"
                )
            pending = PendingExchange(command=command)
            self._pending = pending
            # late output of an abandoned exchange must not resolve this one
            self._buffer = ""
            writer = self._writer

        logger.debug("Sending command to stream: %r", command)
        try:
            writer(command + self.dialect.line_terminator)
        except Exception:
            with self._lock:
                if self._pending is pending:
                    self._pending = None
            raise

        pending.done.wait(timeout)
        with self._lock:
            timed_out = not pending.done.is_set()
            if timed_out:
                self._pending = None
                self._buffer = ""
        if timed_out:
            logger.warning("Command %r timed out after %.1fs", command, timeout)
            raise ExchangeTimeoutError(command, timeout)
        if pending.error is not None:
            raise pending.error

        assert pending.output is not None
        logger.debug(
            "Command %r answered in %.2fs", command, time.monotonic() - pending.started_at
        )
        return pending.output
