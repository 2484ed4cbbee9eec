"""Peeling decoder for the LT fountain code."""

from __future__ import annotations

import secrets
from collections import deque
from dataclasses import dataclass, field

from fountainstore.rng import MT19937
from fountainstore.soliton import RobustSolitonDistribution
from fountainstore.symbol import SYMBOL_SIZE, Symbol
from fountainstore.utils import number_of_fragments, size_of_last_fragment, xor_into


@dataclass(eq=False)
class DecodingState:
    """Everything the decoder keeps about one blob being reassembled."""

    blob_id: bytes
    blob_size: int
    blob: bytearray
    number_of_fragments: int
    size_of_last_fragment: int
    degree_calculator: RobustSolitonDistribution
    number_of_decoded_symbols: int = 0
    symbol_counter: int = 0
    average_degree: int = 0
    neighbour_index: list[deque[Symbol]] = field(init=False)
    fragments: list[bool] = field(init=False)
    ripple: deque[Symbol] = field(init=False, default_factory=deque)

    def __post_init__(self) -> None:
        self.neighbour_index = [deque() for _ in range(self.number_of_fragments)]
        self.fragments = [False] * self.number_of_fragments

    def fragment_size(self, neighbour: int) -> int:
        """Bytes covered by fragment ``neighbour`` (numbered from 1)."""
        if neighbour == self.number_of_fragments:
            return self.size_of_last_fragment
        return SYMBOL_SIZE

    def is_decoded(self) -> bool:
        """True once every fragment of the blob has been recovered."""
        return self.number_of_decoded_symbols >= self.number_of_fragments

    def release(self) -> None:
        """Drop the symbols still waiting in the index of an unfinished blob."""
        if self.is_decoded():
            return
        for waiting in self.neighbour_index:
            for symbol in waiting:
                if symbol.degree != 1:
                    symbol.degree -= 1
            waiting.clear()


class Decoder:
    """Recovers blobs from symbols whose neighbours are derived from their seeds."""

    def __init__(self, generator: MT19937 | None = None) -> None:
        self.generator = generator if generator is not None else MT19937(secrets.randbits(32))
        self._soliton_distributions: dict[int, RobustSolitonDistribution] = {}

    def init_state(
        self, blob_id: bytes, blob_size: int, blob: bytearray | None = None
    ) -> DecodingState:
        """Prepare decoding of a blob of ``blob_size`` bytes into ``blob``."""
        if blob is None:
            blob = bytearray(blob_size)
        elif len(blob) < blob_size:
            raise ValueError(f"blob buffer holds {len(blob)} bytes, needs {blob_size}")
        fragments = number_of_fragments(blob_size, SYMBOL_SIZE)
        last = size_of_last_fragment(blob_size, SYMBOL_SIZE)
        distribution = self._soliton_distributions.get(fragments)
        if distribution is None:
            distribution = RobustSolitonDistribution(self.generator, fragments)
            self._soliton_distributions[fragments] = distribution
        return DecodingState(blob_id, blob_size, blob, fragments, last, distribution)

    def decode_next(self, state: DecodingState, symbol: Symbol) -> bool:
        """Feed one symbol; return True when the blob has been fully decoded."""
        self.generator.seed(symbol.seed)
        degree = state.degree_calculator.next_degree()
        symbol.degree = degree
        state.average_degree += degree
        state.symbol_counter += 1

        chosen: set[int] = set()
        while len(chosen) < degree:
            neighbour = self.generator.uniform_int(1, state.number_of_fragments)
            if neighbour in chosen:
                continue
            chosen.add(neighbour)
            if state.fragments[neighbour - 1]:
                offset = (neighbour - 1) * SYMBOL_SIZE
                size = state.fragment_size(neighbour)
                xor_into(state.blob[offset:offset + size], symbol.data, size)
                symbol.degree -= 1
            else:
                symbol.neighbours.add(neighbour)
                state.neighbour_index[neighbour - 1].append(symbol)

        if symbol.degree == 1:
            state.ripple.append(symbol)
            self.handle_decoded_symbol(state)
            return state.is_decoded()
        return False

    def handle_decoded_symbol(self, state: DecodingState) -> None:
        """Drain the ripple, writing decoded fragments and peeling dependent symbols."""
        while state.ripple:
            decoded = state.ripple.popleft()
            neighbour = min(decoded.neighbours)
            offset = (neighbour - 1) * SYMBOL_SIZE
            size = state.fragment_size(neighbour)
            state.blob[offset:offset + size] = decoded.data[:size]
            if not state.fragments[neighbour - 1]:
                state.fragments[neighbour - 1] = True
                state.number_of_decoded_symbols += 1

            waiting = state.neighbour_index[neighbour - 1]
            while waiting:
                other = waiting.popleft()
                if other.degree == 1:
                    continue
                other.neighbours.discard(neighbour)
                other.degree -= 1
                xor_into(decoded.data, other.data, SYMBOL_SIZE)
                if other.degree == 1:
                    state.ripple.append(other)

    def debugging_info(self, state: DecodingState) -> str:
        """Describe the decoded-fragment bitmap and the symbols waiting on each fragment."""
        bitmap = "".join("1" if done else "0" for done in reversed(state.fragments))
        lines = [bitmap]
        for number, waiting in enumerate(state.neighbour_index, start=1):
            entries = "".join(
                f"[{symbol.degree}: " + "".join(f"{n}," for n in sorted(symbol.neighbours)) + "], "
                for symbol in waiting
            )
            lines.append(f"{number}: {entries}")
        return "\n".join(lines)