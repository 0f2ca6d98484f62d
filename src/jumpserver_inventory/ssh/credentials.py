"""SSH credential helpers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import ConfigurationError


@dataclass(frozen=True)
class SessionConfig:
    """Connection settings for one bastion session.

    Exactly one credential kind is allowed: ``private_key`` (PEM text, with an
    optional ``passphrase``) or ``password``.
    """

    host: str
    username: str
    port: int = 22
    password: Optional[str] = None
    private_key: Optional[str] = None
    passphrase: Optional[str] = None
    connect_timeout: float = 30.0
    keepalive_interval: int = 10

    @property
    def auth_method(self) -> str:
        return "key" if self.private_key else "password"

    def validate(self) -> None:
        if not self.host:
            raise ConfigurationError("Missing bastion host")
        if not self.username:
            raise ConfigurationError("Missing bastion username")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid port: {self.port}")
        if self.private_key and self.password:
            raise ConfigurationError(
                "Both private key and password supplied; choose one authentication method"
            )
        if not self.private_key and not self.password:
            raise ConfigurationError(
                "Missing authentication info: private key or password required"
            )
        if self.passphrase and not self.private_key:
            raise ConfigurationError("Passphrase supplied without a private key")

    def describe(self) -> str:
        """Credential-free summary for log lines."""
        return f"{self.username}@{self.host}:{self.port} ({self.auth_method})"

    @classmethod
    def from_key_file(
        cls,
        host: str,
        username: str,
        key_path: str,
        *,
        passphrase: Optional[str] = None,
        **kwargs,
    ) -> "SessionConfig":
        path = Path(key_path).expanduser()
        try:
            key_text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read private key {path}: {exc}") from exc
        return cls(
            host=host,
            username=username,
            private_key=key_text,
            passphrase=passphrase,
            **kwargs,
        )
