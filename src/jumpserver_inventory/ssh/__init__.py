"""SSH utilities for jumpserver-inventory."""

from .credentials import SessionConfig
from .transport import (
    ChannelHandlers,
    KeyboardInteractiveHandler,
    ParamikoShellChannel,
    ParamikoTransport,
    ShellChannel,
    Transport,
    load_private_key,
)

__all__ = [
    "SessionConfig",
    "ChannelHandlers",
    "KeyboardInteractiveHandler",
    "ParamikoShellChannel",
    "ParamikoTransport",
    "ShellChannel",
    "Transport",
    "load_private_key",
]
