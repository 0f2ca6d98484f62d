"""Bastion-host session driver for the JumpServer text menu."""

from .client import JumpServerClient
from .correlator import ExchangeCorrelator, PendingExchange
from .dialect import DEFAULT_DIALECT, HOST_PROMPT, OPTIONS_PROMPT, MenuDialect
from .models import Asset, AssetSet, PaginationInfo, ParsedPage
from .pagination import PaginationDriver, StopReason
from .parser import parse_jumpserver_output
from .sanitizer import strip_ansi
from .session import JumpServerSession, SessionState

__all__ = [
    "JumpServerClient",
    "ExchangeCorrelator",
    "PendingExchange",
    "DEFAULT_DIALECT",
    "HOST_PROMPT",
    "OPTIONS_PROMPT",
    "MenuDialect",
    "Asset",
    "AssetSet",
    "PaginationInfo",
    "ParsedPage",
    "PaginationDriver",
    "StopReason",
    "parse_jumpserver_output",
    "strip_ansi",
    "JumpServerSession",
    "SessionState",
]
