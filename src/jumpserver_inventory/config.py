"""Configuration loading utilities for jumpserver-inventory."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .jumpserver.dialect import MenuDialect
from .ssh import SessionConfig

# Load .env file if it exists
load_dotenv()

_DEFAULT_CONFIG_PATH = Path("config/default_config.json")


@dataclass
class JumpServerSettings:
    """Default connection values used when the CLI does not supply them."""

    host: Optional[str] = None
    port: int = 22
    username: Optional[str] = None
    password: Optional[str] = None
    key_path: Optional[str] = None
    passphrase: Optional[str] = None


@dataclass
class TimingConfig:
    """Timeouts and polling, all in seconds."""

    exchange_timeout: float = 15.0
    menu_poll_interval: float = 0.5
    menu_poll_retries: int = 10
    connect_timeout: float = 30.0
    keepalive_interval: int = 10


@dataclass
class PaginationConfig:
    max_pages: int = 100
    max_total_time: float = 300.0


@dataclass
class AppConfig:
    """Top-level configuration."""

    jumpserver: JumpServerSettings = field(default_factory=JumpServerSettings)
    timing: TimingConfig = field(default_factory=TimingConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    menu: MenuDialect = field(default_factory=MenuDialect)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        def section(name: str) -> Dict[str, Any]:
            data = payload.get(name, {}) or {}
            # 下划线开头的字段视为注释
            return {k: v for k, v in data.items() if not k.startswith("_")}

        return cls(
            jumpserver=JumpServerSettings(
                **{**JumpServerSettings().__dict__, **section("jumpserver")}
            ),
            timing=TimingConfig(**{**TimingConfig().__dict__, **section("timing")}),
            pagination=PaginationConfig(
                **{**PaginationConfig().__dict__, **section("pagination")}
            ),
            menu=MenuDialect.from_dict(section("menu")),
        )

    def session_config(
        self,
        *,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        key_path: Optional[str] = None,
        passphrase: Optional[str] = None,
    ) -> SessionConfig:
        """Build a SessionConfig, explicit arguments winning over configured defaults.

        A key path (explicit or configured) takes the place of a configured
        password; an explicit password still conflicts with an explicit key.
        """
        settings = self.jumpserver
        host = host or settings.host
        username = username or settings.username
        port = port or settings.port
        if key_path is None and password is None:
            key_path = settings.key_path
            password = None if key_path else settings.password
        passphrase = passphrase if passphrase is not None else settings.passphrase
        common = {
            "port": port,
            "connect_timeout": self.timing.connect_timeout,
            "keepalive_interval": self.timing.keepalive_interval,
        }
        if key_path:
            return SessionConfig.from_key_file(
                host or "",
                username or "",
                key_path,
                passphrase=passphrase,
                password=password,
                **common,
            )
        return SessionConfig(host=host or "", username=username or "", password=password, **common)

    def client_options(self) -> Dict[str, Any]:
        """Keyword arguments for JumpServerClient."""
        return {
            "dialect": self.menu,
            "exchange_timeout": self.timing.exchange_timeout,
            "menu_poll_interval": self.timing.menu_poll_interval,
            "menu_poll_retries": self.timing.menu_poll_retries,
            "max_pages": self.pagination.max_pages,
            "max_total_time": self.pagination.max_total_time,
        }


def _parse_env(kind, name: str, value: str):
    try:
        return kind(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}") from exc


def _apply_env_overrides(config: AppConfig) -> None:
    settings = config.jumpserver
    env_host = os.getenv("JUMPSERVER_HOST")
    if env_host:
        settings.host = env_host

    env_port = os.getenv("JUMPSERVER_PORT")
    if env_port:
        settings.port = _parse_env(int, "JUMPSERVER_PORT", env_port)

    env_username = os.getenv("JUMPSERVER_USERNAME")
    if env_username:
        settings.username = env_username

    env_password = os.getenv("JUMPSERVER_PASSWORD")
    if env_password:
        settings.password = env_password

    env_key_path = os.getenv("JUMPSERVER_KEY_PATH")
    if env_key_path:
        settings.key_path = env_key_path

    env_passphrase = os.getenv("JUMPSERVER_KEY_PASSPHRASE")
    if env_passphrase:
        settings.passphrase = env_passphrase

    env_timeout = os.getenv("JUMPSERVER_EXCHANGE_TIMEOUT")
    if env_timeout:
        config.timing.exchange_timeout = _parse_env(
            float, "JUMPSERVER_EXCHANGE_TIMEOUT", env_timeout
        )


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path` or the default location.

    Environment variables (higher priority than config file):
    - JUMPSERVER_HOST / JUMPSERVER_PORT / JUMPSERVER_USERNAME: bastion endpoint
    - JUMPSERVER_PASSWORD: password authentication
    - JUMPSERVER_KEY_PATH / JUMPSERVER_KEY_PASSPHRASE: key authentication
    - JUMPSERVER_EXCHANGE_TIMEOUT: per-command timeout in seconds
    """
    if path and not Path(path).is_file():
        raise FileNotFoundError(f"Could not find configuration file: {path}")

    candidate = Path(path) if path else _DEFAULT_CONFIG_PATH
    if candidate.is_file():
        with candidate.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        config = AppConfig.from_dict(data)
    else:
        config = AppConfig()

    _apply_env_overrides(config)
    return config
