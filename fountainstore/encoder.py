"""LT fountain encoder producing seeded symbols over a stored blob."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from fountainstore.rng import MT19937
from fountainstore.soliton import RobustSolitonDistribution
from fountainstore.symbol import SYMBOL_SIZE, Symbol
from fountainstore.utils import number_of_fragments, size_of_last_fragment, xor_into


@dataclass(eq=False)
class EncodingState:
    """What the encoder keeps about one blob it produces symbols for."""

    blob_id: bytes
    blob_size: int
    blob: bytes | bytearray
    number_of_fragments: int
    size_of_last_fragment: int
    degree_calculator: RobustSolitonDistribution

    def fragment_size(self, neighbour: int) -> int:
        """Bytes covered by fragment ``neighbour`` (numbered from 1)."""
        if neighbour == self.number_of_fragments:
            return self.size_of_last_fragment
        return SYMBOL_SIZE

    def fragment(self, neighbour: int) -> bytes:
        """Return the bytes of fragment ``neighbour`` (numbered from 1)."""
        if not 1 <= neighbour <= self.number_of_fragments:
            raise IndexError(f"fragment {neighbour} out of range")
        offset = (neighbour - 1) * SYMBOL_SIZE
        return bytes(self.blob[offset:offset + self.fragment_size(neighbour)])


class Encoder:
    """Produces an endless stream of symbols for blobs.

    Each symbol carries a seed drawn from ``seeder``; reseeding ``generator``
    with that seed yields the symbol's degree and neighbours, so a decoder
    holding the same seed can recompute them.
    """

    def __init__(self, generator: MT19937 | None = None, seeder: MT19937 | None = None) -> None:
        self.generator = generator if generator is not None else MT19937(secrets.randbits(32))
        self.seeder = seeder if seeder is not None else MT19937(secrets.randbits(32))
        self._soliton_distributions: dict[int, RobustSolitonDistribution] = {}

    def init_state(self, blob_id: bytes, blob_size: int, blob: bytes | bytearray) -> EncodingState:
        """Prepare encoding of the first ``blob_size`` bytes of ``blob``."""
        if len(blob) < blob_size:
            raise ValueError(f"blob holds {len(blob)} bytes, needs {blob_size}")
        fragments = number_of_fragments(blob_size, SYMBOL_SIZE)
        last = size_of_last_fragment(blob_size, SYMBOL_SIZE)
        distribution = self._soliton_distributions.get(fragments)
        if distribution is None:
            distribution = RobustSolitonDistribution(self.generator, fragments)
            self._soliton_distributions[fragments] = distribution
        return EncodingState(blob_id, blob_size, blob, fragments, last, distribution)

    def encode_next(self, state: EncodingState) -> Symbol:
        """Return the next symbol for the blob described by ``state``."""
        seed = self.seeder.next_u32()
        self.generator.seed(seed)
        degree = state.degree_calculator.next_degree()
        symbol = Symbol(seed=seed, degree=degree)

        chosen: set[int] = set()
        while len(chosen) < degree:
            neighbour = self.generator.uniform_int(1, state.number_of_fragments)
            if neighbour in chosen:
                continue
            fragment = state.fragment(neighbour)
            if chosen:
                xor_into(fragment, symbol.data, len(fragment))
            else:
                symbol.data[:len(fragment)] = fragment
            chosen.add(neighbour)
        return symbol