"""Command-line interface for jumpserver-inventory."""

from __future__ import annotations

import argparse
import getpass
import json
from typing import List, Optional, Sequence, Tuple

from .config import AppConfig, load_config
from .errors import (
    AuthError,
    ConfigurationError,
    ExchangeTimeoutError,
    InitialMenuTimeoutError,
    JumpServerError,
    ProtocolError,
    SSHConnectionError,
)
from .jumpserver import Asset, JumpServerClient
from .utils.logging import get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_AUTH = 3
EXIT_CONNECTION = 4
EXIT_TIMEOUT = 5
EXIT_PROTOCOL = 6


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jumpserver-inventory",
        description="List the assets reachable through a JumpServer bastion host.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file overriding defaults.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Log every menu exchange (DEBUG level).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    assets_parser = subparsers.add_parser(
        "assets", help="Enumerate every asset listed by the bastion menu"
    )
    assets_parser.add_argument("--host", help="Bastion host")
    assets_parser.add_argument("--port", type=int, default=None, help="SSH port")
    assets_parser.add_argument("--user", help="Bastion username")
    assets_parser.add_argument("--password", help="Bastion password", default=None)
    assets_parser.add_argument(
        "--key-path", help="Path to SSH private key", default=None
    )
    assets_parser.add_argument(
        "--passphrase", help="Passphrase for the private key", default=None
    )
    assets_parser.add_argument(
        "--ask-password", action="store_true",
        help="Prompt for the password instead of reading it from arguments/config",
    )
    assets_parser.add_argument(
        "--timeout", type=float, default=None,
        help="Per-command timeout in seconds",
    )
    assets_parser.add_argument(
        "--format", choices=["table", "json"], default="table",
        help="Output format",
    )
    return parser


def prompt_keyboard_interactive(
    title: str, instructions: str, prompts: Sequence[Tuple[str, bool]]
) -> List[str]:
    """Answer a keyboard-interactive (2FA) challenge on the terminal."""
    if title:
        print(title)
    if instructions:
        print(instructions)
    return [input(prompt) if echo else getpass.getpass(prompt) for prompt, echo in prompts]


def format_table(assets: Sequence[Asset]) -> str:
    headers = ("ID", "NAME", "ADDRESS", "PLATFORM", "ORGANIZATION", "COMMENT")
    rows = [
        (
            "" if asset.id is None else str(asset.id),
            asset.name,
            asset.address,
            asset.platform,
            asset.organization,
            asset.comment,
        )
        for asset in assets
    ]
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    lines = [
        "  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip(),
        "  ".join("-" * w for w in widths),
    ]
    for row in rows:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip())
    return "\n".join(lines)


def handle_assets_command(args: argparse.Namespace, config: AppConfig) -> int:
    password = args.password
    if args.ask_password:
        password = getpass.getpass("Bastion password: ")
    if args.timeout is not None:
        config.timing.exchange_timeout = args.timeout

    session_config = config.session_config(
        host=args.host,
        port=args.port,
        username=args.user,
        password=password,
        key_path=args.key_path,
        passphrase=args.passphrase,
    )
    client = JumpServerClient(
        session_config,
        keyboard_interactive_handler=prompt_keyboard_interactive,
        **config.client_options(),
    )
    with client:
        assets = client.get_all_assets()

    if args.format == "json":
        print(json.dumps([asset.to_payload() for asset in assets], ensure_ascii=False, indent=2))
    else:
        print(format_table(assets))
        print(f"\n{len(assets)} assets")
    return EXIT_OK


def _report_error(exc: JumpServerError) -> int:
    if isinstance(exc, ConfigurationError):
        print(f"❌ Configuration error: {exc}")
        return EXIT_CONFIG
    if isinstance(exc, AuthError):
        print(f"🔐 Authentication failed: {exc}")
        return EXIT_AUTH
    if isinstance(exc, (ExchangeTimeoutError, InitialMenuTimeoutError)):
        print(f"⏱️  Timed out talking to the bastion: {exc}")
        return EXIT_TIMEOUT
    if isinstance(exc, ProtocolError):
        print(f"❓ Unrecognised bastion menu: {exc}")
        return EXIT_PROTOCOL
    if isinstance(exc, SSHConnectionError):
        print(f"🔌 Connection failed: {exc}")
        return EXIT_CONNECTION
    print(f"❌ {exc}")
    return EXIT_CONNECTION


def dispatch_command(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        return _report_error(ConfigurationError(str(exc)))
    except json.JSONDecodeError as exc:
        return _report_error(ConfigurationError(f"Invalid configuration file {args.config}: {exc}"))
    except ConfigurationError as exc:
        return _report_error(exc)

    if args.command == "assets":
        try:
            return handle_assets_command(args, config)
        except JumpServerError as exc:
            logger.debug("Command failed", exc_info=True)
            return _report_error(exc)

    raise ValueError(f"Unsupported command: {args.command}")


def run_cli(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    get_logger(verbose=args.verbose)
    return dispatch_command(args)
