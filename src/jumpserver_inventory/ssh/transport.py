"""Transport capability: authenticated SSH session plus one interactive shell.

The driver only talks to :class:`Transport` and :class:`ShellChannel`;
:class:`ParamikoTransport` is the production implementation.
"""

from __future__ import annotations

import codecs
import io
import logging
import socket
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import paramiko

from ..errors import AuthError, SSHConnectionError
from .credentials import SessionConfig

logger = logging.getLogger(__name__)

BUFFER_SIZE = 4096
RECV_POLL_TIMEOUT = 0.5
SHELL_TERM = "vt100"
SHELL_WIDTH = 200
SHELL_HEIGHT = 50

# paramiko's handler signature: (title, instructions, [(prompt, echo), ...]) -> answers
KeyboardInteractiveHandler = Callable[[str, str, Sequence[Tuple[str, bool]]], List[str]]


@dataclass
class ChannelHandlers:
    """Callbacks a shell channel dispatches from its reader thread."""

    on_data: Callable[[str], None]
    on_close: Callable[[], None]
    on_error: Callable[[BaseException], None]


class ShellChannel(ABC):
    """Duplex text channel to the remote menu."""

    @abstractmethod
    def write(self, text: str) -> None:
        """Send ``text`` to the remote shell."""

    @abstractmethod
    def end(self) -> None:
        """Close the channel. Safe to call more than once."""


class Transport(ABC):
    """Opens an authenticated session and an interactive shell on it."""

    @abstractmethod
    def open(
        self,
        config: SessionConfig,
        *,
        keyboard_interactive_handler: Optional[KeyboardInteractiveHandler] = None,
    ) -> None:
        """Connect and authenticate; blocks until ready.

        Raises ``AuthError`` for rejected credentials and ``SSHConnectionError``
        for everything else.
        """

    @abstractmethod
    def open_shell(self, handlers: ChannelHandlers) -> ShellChannel:
        """Request a shell; ``handlers`` receive its output from now on."""

    @abstractmethod
    def end(self) -> None:
        """Tear down the session. Safe to call more than once."""


_KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


def load_private_key(key_text: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """Parse PEM/OpenSSH private key text into a paramiko key."""
    last_error: Optional[Exception] = None
    for key_class in _KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(key_text), password=passphrase)
        except paramiko.PasswordRequiredException as exc:
            raise AuthError("Private key is encrypted and no passphrase was supplied") from exc
        except (paramiko.SSHException, ValueError) as exc:
            last_error = exc
    raise AuthError(f"Unsupported or malformed private key: {last_error}") from last_error


class ParamikoShellChannel(ShellChannel):
    """Wraps a paramiko shell channel with a daemon reader thread."""

    def __init__(self, channel: paramiko.Channel, handlers: ChannelHandlers) -> None:
        self._channel = channel
        self._handlers = handlers
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._reader_loop, name="jumpserver-shell-reader", daemon=True
        )

    def start(self) -> None:
        self._channel.settimeout(RECV_POLL_TIMEOUT)
        self._thread.start()

    def _reader_loop(self) -> None:
        # incremental so multi-byte characters split across recv() calls survive
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while not self._stopped.is_set():
                try:
                    data = self._channel.recv(BUFFER_SIZE)
                except socket.timeout:
                    continue
                if not data:
                    break
                text = decoder.decode(data)
                if text:
                    self._handlers.on_data(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                self._handlers.on_data(tail)
        except Exception as exc:
            if self._stopped.is_set():
                return
            logger.error("Shell channel error: %s", exc)
            self._handlers.on_error(exc)
            return
        if not self._stopped.is_set():
            logger.info("Shell channel closed by remote")
            self._handlers.on_close()

    def write(self, text: str) -> None:
        try:
            self._channel.sendall(text.encode("utf-8"))
        except (paramiko.SSHException, OSError) as exc:
            raise SSHConnectionError(f"Failed to write to shell channel: {exc}") from exc

    def end(self) -> None:
        if self._stopped.is_set():
            return
        self._stopped.set()
        self._channel.close()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=RECV_POLL_TIMEOUT * 2)


class ParamikoTransport(Transport):
    """Transport built on paramiko.SSHClient."""

    def __init__(
        self,
        *,
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
        term: str = SHELL_TERM,
    ) -> None:
        self._client_factory = client_factory or paramiko.SSHClient
        self._client: Optional[paramiko.SSHClient] = None
        self.term = term

    def open(
        self,
        config: SessionConfig,
        *,
        keyboard_interactive_handler: Optional[KeyboardInteractiveHandler] = None,
    ) -> None:
        if self._client:
            return
        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        connect_kwargs = {
            "hostname": config.host,
            "port": config.port,
            "username": config.username,
            "timeout": config.connect_timeout,
            "banner_timeout": config.connect_timeout,
            "auth_timeout": config.connect_timeout,
            "look_for_keys": False,
            "allow_agent": False,
        }
        if config.private_key:
            try:
                connect_kwargs["pkey"] = load_private_key(config.private_key, config.passphrase)
            except AuthError:
                client.close()
                raise
        else:
            connect_kwargs["password"] = config.password

        auth_failure: Optional[paramiko.AuthenticationException] = None
        try:
            client.connect(**connect_kwargs)
        except paramiko.AuthenticationException as exc:
            auth_failure = exc
        except (paramiko.SSHException, OSError) as exc:
            client.close()
            raise SSHConnectionError(f"Cannot connect to {config.host}:{config.port}: {exc}") from exc

        try:
            self._finish_authentication(client, config, keyboard_interactive_handler, auth_failure)
        except (AuthError, SSHConnectionError):
            client.close()
            raise

        transport = client.get_transport()
        if transport is not None and config.keepalive_interval:
            transport.set_keepalive(config.keepalive_interval)
        self._client = client
        logger.info("SSH connection established: %s", config.describe())

    def _finish_authentication(
        self,
        client: paramiko.SSHClient,
        config: SessionConfig,
        handler: Optional[KeyboardInteractiveHandler],
        auth_failure: Optional[paramiko.AuthenticationException],
    ) -> None:
        """Run the keyboard-interactive (2FA) stage when the server asks for one."""
        transport = client.get_transport()
        if transport is None or not transport.is_active():
            if auth_failure is not None:
                raise AuthError(f"Authentication failed: {auth_failure}") from auth_failure
            raise SSHConnectionError("SSH transport closed during authentication")
        if transport.is_authenticated():
            return

        # a rejected password only leads to 2FA when the server offers keyboard-interactive
        allowed = getattr(auth_failure, "allowed_types", None) or []
        if auth_failure is not None and "keyboard-interactive" not in allowed:
            raise AuthError(f"Authentication failed: {auth_failure}") from auth_failure
        if handler is None:
            raise AuthError("Two-factor authentication required but no handler provided")

        logger.info("Two-factor authentication required, calling handler")
        try:
            transport.auth_interactive(config.username, handler)
        except paramiko.AuthenticationException as exc:
            raise AuthError(f"Two-factor authentication failed: {exc}") from exc
        except paramiko.SSHException as exc:
            raise AuthError(f"Two-factor authentication error: {exc}") from exc
        if not transport.is_authenticated():
            raise AuthError("Two-factor authentication was not accepted")

    def open_shell(self, handlers: ChannelHandlers) -> ShellChannel:
        if not self._client:
            raise SSHConnectionError("Transport is not open")
        try:
            channel = self._client.invoke_shell(
                term=self.term, width=SHELL_WIDTH, height=SHELL_HEIGHT
            )
        except (paramiko.SSHException, OSError) as exc:
            raise SSHConnectionError(f"Failed to open interactive shell: {exc}") from exc
        shell = ParamikoShellChannel(channel, handlers)
        shell.start()
        return shell

    def end(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
