"""Fragment arithmetic and block-wise XOR shared by the encoder and decoder."""

from __future__ import annotations

BLOCK_SIZE = 16
"""XOR works on whole blocks of this many bytes."""


def number_of_fragments(blob_size: int, symbol_size: int) -> int:
    """Return how many fragments of ``symbol_size`` bytes cover ``blob_size`` bytes."""
    if symbol_size <= 0:
        raise ValueError("symbol size must be positive")
    if blob_size < 0:
        raise ValueError("blob size must not be negative")
    whole, rest = divmod(blob_size, symbol_size)
    return whole + 1 if rest else whole


def size_of_last_fragment(blob_size: int, symbol_size: int) -> int:
    """Return the size of the final fragment of a blob, which may be short."""
    if symbol_size <= 0:
        raise ValueError("symbol size must be positive")
    if blob_size < 0:
        raise ValueError("blob size must not be negative")
    rest = blob_size % symbol_size
    return rest if rest else symbol_size


def xor_into(src, dst, size: int) -> None:
    """XOR the first ``size`` bytes of ``src`` into ``dst`` in place.

    Only whole 16-byte blocks are combined; a trailing partial block is
    left untouched.
    """
    if size < 0:
        raise ValueError("size must not be negative")
    length = size - size % BLOCK_SIZE
    if len(src) < length or len(dst) < length:
        raise ValueError(f"buffers are shorter than {length} bytes")
    if length == 0:
        return
    mixed = int.from_bytes(bytes(src[:length]), "little") ^ int.from_bytes(
        bytes(dst[:length]), "little"
    )
    dst[:length] = mixed.to_bytes(length, "little")