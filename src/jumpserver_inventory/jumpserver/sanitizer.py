"""Strip terminal control sequences from raw shell output."""

from __future__ import annotations

import re

# OSC (window title etc.), terminated by BEL or ST
OSC_SEQUENCE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
# CSI (7- and 8-bit), charset designation, keypad modes, other two-byte escapes
ANSI_ESCAPE = re.compile(
    r"(?:\x1b\[|\x9b)[0-?]*[ -/]*[@-~]"
    r"|\x1b[()#][0-9A-Za-z]"
    r"|\x1b[=>]"
    r"|\x1b[@-Z\\-_]"
)
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def strip_ansi(text: str) -> str:
    """Return ``text`` without escape sequences or stray control characters.

    Line breaks (``\\n``, ``\\r``) and tabs are kept; clean text comes back unchanged.
    """
    if not text:
        return text
    text = OSC_SEQUENCE.sub("", text)
    text = ANSI_ESCAPE.sub("", text)
    return CONTROL_CHARS.sub("", text)
