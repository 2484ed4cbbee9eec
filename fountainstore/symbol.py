"""An encoded symbol: a seed plus one symbol's worth of XORed data."""

from __future__ import annotations

from dataclasses import dataclass, field

SYMBOL_SIZE = 1024
"""Bytes of data carried by every symbol; a multiple of 16."""


@dataclass(eq=False)
class Symbol:
    """A symbol of a fountain code.

    The seed is enough for the receiving side to recompute the degree and
    the neighbour set; ``neighbours`` is only filled in by the decoder.
    """

    seed: int = 0
    data: bytearray = field(default_factory=lambda: bytearray(SYMBOL_SIZE))
    degree: int = 0
    neighbours: set[int] = field(default_factory=set)

    def __post_init__(self) -> None:
        data = bytearray(self.data)
        if len(data) > SYMBOL_SIZE:
            raise ValueError(f"symbol data longer than {SYMBOL_SIZE} bytes")
        data.extend(bytes(SYMBOL_SIZE - len(data)))
        self.data = data