"""The robust soliton degree distribution used by the LT fountain code."""

from __future__ import annotations

import math

from fountainstore.rng import MT19937

C = 0.02
DELTA = 0.6

_UNSIGNED = 1 << 32


def _build_alias_table(weights: list[float]) -> list[tuple[float, int]]:
    """Build an alias table (acceptance probability, alias) for ``weights``."""
    total = 0.0
    for weight in weights:
        total += weight
    average = total / len(weights)

    below: list[list] = []
    above: list[list] = []
    for index, weight in enumerate(weights):
        scaled = weight / average
        (below if scaled < 1.0 else above).append([scaled, index])

    table: list[tuple[float, int]] = [(1.0, 0)] * len(weights)
    b = a = 0
    while b < len(below) and a < len(above):
        low_value, low_index = below[b]
        table[low_index] = (low_value, above[a][1])
        above[a][0] -= 1.0 - low_value
        if above[a][0] < 1.0:
            below[b] = above[a]
            a += 1
        else:
            b += 1
    for _, index in below[b:]:
        table[index] = (1.0, table[index][1])
    for _, index in above[a:]:
        table[index] = (1.0, table[index][1])
    return table


class RobustSolitonDistribution:
    """Draws symbol degrees in ``1..max_degree`` from a robust soliton distribution."""

    def __init__(self, generator: MT19937, max_degree: int) -> None:
        if max_degree < 1:
            raise ValueError("max_degree must be at least 1")
        self.generator = generator
        self.max_degree = max_degree
        self.r = C * math.log(max_degree / DELTA) * math.sqrt(max_degree)
        self._table = _build_alias_table(self.pdf())

    def p(self, i: int, max_degree: int) -> float:
        """Ideal soliton weight of degree ``i``."""
        if i == 1:
            return 1.0 / max_degree
        return 1.0 / (i * (i - 1))

    def t(self, i: int, max_degree: int) -> float:
        """Robust correction weight of degree ``i``."""
        spike = int(max_degree / self.r)
        if i <= (spike - 1) % _UNSIGNED:
            return self.r / float(i * max_degree)
        if i == spike:
            return (self.r * math.log(self.r / DELTA)) / float(max_degree)
        return 0.0

    def pdf(self) -> list[float]:
        """Unnormalised weights indexed by degree; degree 0 has weight 0."""
        m = self.max_degree
        return [0.0] + [self.p(i, m) + self.t(i, m) for i in range(1, m + 1)]

    def next_degree(self) -> int:
        """Draw the next degree using the shared generator."""
        index = self.generator.uniform_int(0, len(self._table) - 1)
        test = self.generator.uniform_real()
        probability, alias = self._table[index]
        return index if test < probability else alias