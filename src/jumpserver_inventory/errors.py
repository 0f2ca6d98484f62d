"""Error taxonomy for the bastion session driver.

Callers distinguish failures by type: credentials (``AuthError``), reachability
(``SSHConnectionError``), timeouts (``InitialMenuTimeoutError`` /
``ExchangeTimeoutError``) and an unrecognised remote menu (``ProtocolError``).
"""

from __future__ import annotations


class JumpServerError(RuntimeError):
    """Base class for every error raised by this package."""

    pass


class ConfigurationError(JumpServerError, ValueError):
    """Session configuration is incomplete or contradictory; raised before any I/O."""

    pass


class AuthError(JumpServerError):
    """The bastion rejected the supplied credentials."""

    pass


class SSHConnectionError(JumpServerError):
    """The SSH transport or shell channel could not be established or was lost."""

    pass


class InitialMenuTimeoutError(JumpServerError):
    """The ready sentinel never appeared while waiting for the first menu."""

    pass


class ExchangeTimeoutError(JumpServerError):
    """A single command exchange did not see a sentinel before its deadline."""

    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(f"Command '{command}' timed out after {timeout:g}s")
        self.command = command
        self.timeout = timeout


class ProtocolError(JumpServerError):
    """The remote menu did not behave like the expected dialect."""

    pass


class SessionStateError(ProtocolError):
    """An operation was attempted in a lifecycle state that does not allow it."""

    pass


class ExchangeInProgressError(ProtocolError):
    """A second exchange was issued while another one is still pending."""

    pass


class MenuFormatError(ProtocolError):
    """The asset listing could not be recognised at all."""

    pass
