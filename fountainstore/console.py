"""Coloured console tags and the blob checksum printed by the data servers."""

from __future__ import annotations

RESET = "\033[0m"
BOLDRED = "\033[1m\033[31m"
BOLDGREEN = "\033[1m\033[32m"
BOLDYELLOW = "\033[1m\033[33m"

_MASK64 = (1 << 64) - 1
_GOLDEN = 0x9E3779B9


def _tag(colour: str, text: str) -> str:
    return f"[{colour}{text}{RESET}]"


def green(text: str) -> str:
    """Return ``text`` as a bracketed bold green tag."""
    return _tag(BOLDGREEN, text)


def red(text: str) -> str:
    """Return ``text`` as a bracketed bold red tag."""
    return _tag(BOLDRED, text)


def yellow(text: str) -> str:
    """Return ``text`` as a bracketed bold yellow tag."""
    return _tag(BOLDYELLOW, text)


def blob_hash(data: bytes) -> int:
    """Return a 64-bit checksum of ``data`` combining its bytes as signed chars."""
    seed = 0
    for byte in bytes(data):
        value = (byte - 256 if byte > 127 else byte) & _MASK64
        seed ^= (value + _GOLDEN + (seed << 6) + (seed >> 2)) & _MASK64
    return seed