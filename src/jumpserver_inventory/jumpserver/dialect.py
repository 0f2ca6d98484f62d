"""Keystrokes and prompt sentinels of the JumpServer text menu."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

HOST_PROMPT = "[Host]>"
OPTIONS_PROMPT = "Opt>"


@dataclass(frozen=True)
class MenuDialect:
    """One remote menu flavour.

    The correlator resolves an exchange on any of ``exchange_sentinels``; the
    initial-menu wait only accepts ``ready_sentinels``.
    """

    list_command: str = "p"
    next_page_command: str = "n"
    line_terminator: str = "\r"
    host_prompt: str = HOST_PROMPT
    options_prompt: str = OPTIONS_PROMPT
    ready_sentinels: Tuple[str, ...] = (OPTIONS_PROMPT,)

    @property
    def exchange_sentinels(self) -> Tuple[str, ...]:
        return (self.host_prompt, self.options_prompt)

    def matches_exchange(self, text: str) -> bool:
        return any(sentinel in text for sentinel in self.exchange_sentinels)

    def matches_ready(self, text: str) -> bool:
        return any(sentinel in text for sentinel in self.ready_sentinels)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "MenuDialect":
        payload = {k: v for k, v in payload.items() if not k.startswith("_")}
        if "ready_sentinels" in payload:
            payload["ready_sentinels"] = tuple(payload["ready_sentinels"])
        return cls(**{**cls().__dict__, **payload})


DEFAULT_DIALECT = MenuDialect()
