"""Word and bit addressing helpers for word-backed bit vectors."""

from __future__ import annotations

from . import constants as const

# Bits in little-endian order within each word (0 = LSB).
# Word 0 holds bits 0..word_bits-1, word 1 the next word_bits, and so on.


def word_mask(word_bits: int) -> int:
    """All-ones mask for a single word."""
    return (1 << word_bits) - 1


def validate_word_bits(word_bits: int) -> int:
    """Return `word_bits` if it is a positive multiple of 8, else raise ValueError."""
    if (
        isinstance(word_bits, bool)
        or not isinstance(word_bits, int)
        or word_bits <= 0
        or word_bits % const.BITS_PER_BYTE
    ):
        raise ValueError(
            f"word_bits must be a positive multiple of {const.BITS_PER_BYTE}, "
            f"got {word_bits!r}"
        )
    return word_bits


def word_count(bit_width: int, word_bits: int) -> int:
    """Number of words needed to address `bit_width` bits."""
    if bit_width < 0:
        raise ValueError("bit_width must be non-negative")
    return (bit_width + word_bits - 1) // word_bits


def byte_count(bit_width: int) -> int:
    """Number of bytes needed to address `bit_width` bits."""
    if bit_width < 0:
        raise ValueError("bit_width must be non-negative")
    return (bit_width + const.BITS_PER_BYTE - 1) // const.BITS_PER_BYTE


def locate(index: int, word_bits: int) -> tuple[int, int]:
    """Return `(word_index, mask)` addressing bit `index`."""
    word, bit = divmod(index, word_bits)
    return word, 1 << bit


def tail_mask(bit_width: int, word_bits: int) -> int:
    """
    Mask of the valid bits in the last word of a `bit_width` vector.

    Bits above `bit_width` must stay zero, so every whole-vector operation
    ANDs the last word with this mask.
    """
    used = bit_width % word_bits
    if used == 0:
        return word_mask(word_bits)
    return (1 << used) - 1


def iter_set_bits(word: int):
    """Yield the positions of set bits in `word`, ascending."""
    while word:
        low = word & -word
        yield low.bit_length() - 1
        word ^= low
