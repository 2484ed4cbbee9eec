"""A 32-bit Mersenne Twister with the integer and unit-interval draws the codec needs."""

from __future__ import annotations

_N = 624
_M = 397
_MASK = 0xFFFFFFFF
_UPPER = 0x80000000
_LOWER = 0x7FFFFFFF
_MATRIX = 0x9908B0DF

DEFAULT_SEED = 5489


class MT19937:
    """Deterministic MT19937 generator; equal seeds give equal streams."""

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        self._state: list[int] = []
        self._index = _N
        self.seed(seed)

    def seed(self, seed: int) -> None:
        """Reset the generator from a 32-bit seed."""
        value = seed & _MASK
        state = [value]
        for i in range(1, _N):
            value = (1812433253 * (value ^ (value >> 30)) + i) & _MASK
            state.append(value)
        self._state = state
        self._index = _N

    def _twist(self) -> None:
        state = self._state
        for i in range(_N):
            y = (state[i] & _UPPER) | (state[(i + 1) % _N] & _LOWER)
            value = state[(i + _M) % _N] ^ (y >> 1)
            if y & 1:
                value ^= _MATRIX
            state[i] = value
        self._index = 0

    def next_u32(self) -> int:
        """Return the next 32-bit output."""
        if self._index >= _N:
            self._twist()
        y = self._state[self._index]
        self._index += 1
        y ^= y >> 11
        y ^= (y << 7) & 0x9D2C5680
        y ^= (y << 15) & 0xEFC60000
        y ^= y >> 18
        return y & _MASK

    def uniform_int(self, low: int, high: int) -> int:
        """Return an unsigned integer uniformly drawn from ``[low, high]``."""
        if low > high:
            raise ValueError("low must not exceed high")
        if low < 0 or high > _MASK:
            raise ValueError("bounds must be 32-bit unsigned integers")
        span = high - low
        if span == 0:
            return low
        if span == _MASK:
            return low + self.next_u32()
        bucket_size = _MASK // (span + 1)
        if _MASK % (span + 1) == span:
            bucket_size += 1
        while True:
            result = self.next_u32() // bucket_size
            if result <= span:
                return low + result

    def uniform_real(self) -> float:
        """Return a float uniformly drawn from ``[0, 1)``."""
        while True:
            result = float(self.next_u32()) * (1.0 / 4294967296.0)
            if result < 1.0:
                return result