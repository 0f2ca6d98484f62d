"""jumpserver-inventory: enumerate assets behind a JumpServer bastion host."""

from .errors import (
    AuthError,
    ConfigurationError,
    ExchangeInProgressError,
    ExchangeTimeoutError,
    InitialMenuTimeoutError,
    JumpServerError,
    MenuFormatError,
    ProtocolError,
    SessionStateError,
    SSHConnectionError,
)
from .jumpserver import Asset, JumpServerClient
from .ssh import SessionConfig

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "ConfigurationError",
    "ExchangeInProgressError",
    "ExchangeTimeoutError",
    "InitialMenuTimeoutError",
    "JumpServerError",
    "MenuFormatError",
    "ProtocolError",
    "SessionStateError",
    "SSHConnectionError",
    "Asset",
    "JumpServerClient",
    "SessionConfig",
]
