"""Lifecycle of one bastion shell session.

``Disconnected -> Connecting -> ShellOpening -> AwaitingInitialMenu -> Ready -> Closed``;
any of the three intermediate states may end in ``Failed``.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from ..errors import (
    InitialMenuTimeoutError,
    JumpServerError,
    SessionStateError,
    SSHConnectionError,
)
from ..ssh import (
    ChannelHandlers,
    KeyboardInteractiveHandler,
    ParamikoTransport,
    SessionConfig,
    ShellChannel,
    Transport,
)
from .correlator import DEFAULT_EXCHANGE_TIMEOUT, ExchangeCorrelator
from .dialect import DEFAULT_DIALECT, MenuDialect

logger = logging.getLogger(__name__)

DEFAULT_MENU_POLL_INTERVAL = 0.5
DEFAULT_MENU_POLL_RETRIES = 10

AuthResultCallback = Callable[[bool, Optional[str]], None]


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SHELL_OPENING = "shell_opening"
    AWAITING_INITIAL_MENU = "awaiting_initial_menu"
    READY = "ready"
    CLOSED = "closed"
    FAILED = "failed"


_CONNECTABLE = (SessionState.DISCONNECTED, SessionState.CLOSED, SessionState.FAILED)


class JumpServerSession:
    """Owns the transport, the shell channel and the exchange correlator."""

    def __init__(
        self,
        config: SessionConfig,
        *,
        transport_factory: Callable[[], Transport] = ParamikoTransport,
        dialect: MenuDialect = DEFAULT_DIALECT,
        exchange_timeout: float = DEFAULT_EXCHANGE_TIMEOUT,
        menu_poll_interval: float = DEFAULT_MENU_POLL_INTERVAL,
        menu_poll_retries: int = DEFAULT_MENU_POLL_RETRIES,
        keyboard_interactive_handler: Optional[KeyboardInteractiveHandler] = None,
        auth_result_callback: Optional[AuthResultCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.dialect = dialect
        self.menu_poll_interval = menu_poll_interval
        self.menu_poll_retries = menu_poll_retries
        self.correlator = ExchangeCorrelator(dialect, timeout=exchange_timeout)
        self._transport_factory = transport_factory
        self._keyboard_interactive_handler = keyboard_interactive_handler
        self._auth_result_callback = auth_result_callback
        self._sleep = sleep

        self._transport: Optional[Transport] = None
        self._channel: Optional[ShellChannel] = None
        self._channel_error: Optional[JumpServerError] = None
        self._state = SessionState.DISCONNECTED
        self._state_lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        with self._state_lock:
            return self._state

    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY

    def _set_state(self, state: SessionState) -> None:
        with self._state_lock:
            previous, self._state = self._state, state
        if previous is not state:
            logger.debug("Session state %s -> %s", previous.value, state.value)

    def __enter__(self) -> "JumpServerSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def connect(self) -> None:
        """Authenticate, open the shell and wait for the first menu."""
        state = self.state
        if state is SessionState.READY:
            return
        if state not in _CONNECTABLE:
            raise SessionStateError(f"Cannot connect while session is {state.value}")

        self.config.validate()
        self._release()
        self.correlator.clear()
        self._channel_error = None

        logger.info("Starting connection to JumpServer %s", self.config.describe())
        try:
            self._set_state(SessionState.CONNECTING)
            self._open_transport()

            self._set_state(SessionState.SHELL_OPENING)
            assert self._transport is not None
            channel = self._transport.open_shell(
                ChannelHandlers(
                    on_data=self.correlator.feed,
                    on_close=self._handle_close,
                    on_error=self._handle_error,
                )
            )
            self._channel = channel

            self._set_state(SessionState.AWAITING_INITIAL_MENU)
            self._await_initial_menu()
        except JumpServerError:
            self._abort()
            raise
        except Exception as exc:
            self._abort()
            raise SSHConnectionError(str(exc)) from exc

        self.correlator.attach(channel.write)
        self._set_state(SessionState.READY)
        logger.info("Initial menu loaded, session ready")

    def _open_transport(self) -> None:
        transport = self._transport_factory()
        self._transport = transport
        try:
            transport.open(
                self.config,
                keyboard_interactive_handler=self._keyboard_interactive_handler,
            )
        except JumpServerError as exc:
            logger.error("SSH connection error: %s", exc)
            self._notify_auth_result(False, str(exc))
            raise
        self._notify_auth_result(True, None)

    def _notify_auth_result(self, success: bool, error: Optional[str]) -> None:
        if self._auth_result_callback:
            self._auth_result_callback(success, error)

    def _await_initial_menu(self) -> None:
        for remaining in range(self.menu_poll_retries, 0, -1):
            self._sleep(self.menu_poll_interval)
            if self._channel_error is not None:
                raise self._channel_error
            buffer = self.correlator.snapshot()
            if self.dialect.matches_ready(buffer):
                # drop banner / MOTD so the first exchange starts clean
                self.correlator.clear()
                return
            logger.debug(
                "Waiting for initial menu, remaining retries: %d, buffer length: %d",
                remaining - 1,
                len(buffer),
            )
        logger.warning(
            "Timeout waiting for initial menu, buffer tail: %r",
            self.correlator.snapshot()[-200:],
        )
        raise InitialMenuTimeoutError("Failed to get initial menu prompt.")

    def run_exchange(self, command: str) -> str:
        """One keystroke/sentinel round trip; only valid while ``Ready``."""
        state = self.state
        if state is not SessionState.READY:
            raise SessionStateError(f"Cannot run {command!r}: session is {state.value}")
        return self.correlator.run_exchange(command)

    def _handle_error(self, exc: BaseException) -> None:
        error = exc if isinstance(exc, JumpServerError) else SSHConnectionError(
            f"Shell channel error: {exc}"
        )
        self._channel_error = error
        self.correlator.detach()
        if not self.correlator.fail(error):
            logger.error("Stream error with no pending command: %s", exc)
        with self._state_lock:
            if self._state is SessionState.READY:
                self._state = SessionState.DISCONNECTED

    def _handle_close(self) -> None:
        self._channel_error = SSHConnectionError("Shell channel closed")
        self.correlator.detach()
        self.correlator.fail(SSHConnectionError("Shell channel closed while waiting for output"))
        with self._state_lock:
            if self._state is SessionState.READY:
                self._state = SessionState.DISCONNECTED
        logger.info("Stream closed")

    def _release(self) -> None:
        self.correlator.detach()
        channel, self._channel = self._channel, None
        transport, self._transport = self._transport, None
        if channel is not None:
            try:
                channel.end()
            except Exception as exc:
                logger.warning("Error while closing shell channel: %s", exc)
        if transport is not None:
            try:
                transport.end()
            except Exception as exc:
                logger.warning("Error while closing SSH transport: %s", exc)

    def _abort(self) -> None:
        self._release()
        self._set_state(SessionState.FAILED)

    def close(self) -> None:
        """End shell and transport; idempotent and safe after a failed connect."""
        had_resources = self._channel is not None or self._transport is not None
        self._release()
        self.correlator.fail(SSHConnectionError("Session closed"))
        self._set_state(SessionState.CLOSED)
        if had_resources:
            logger.info("Connection closed")
