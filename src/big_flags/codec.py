from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable, Sequence

from . import bitmasks
from . import constants as const
from .errors import FlagsDecodeError, TruncatedDataError


def words_to_bytes(words: Sequence[int], byte_width: int, word_bits: int) -> bytes:
    """
    Serialize storage words little-endian by word, low bit first.

    The result is exactly `byte_width` bytes; padding bytes of the last word
    are dropped.
    """
    word_bytes = word_bits // const.BITS_PER_BYTE
    out = bytearray()
    for word in words:
        out.extend(word.to_bytes(word_bytes, "little", signed=False))
    if len(out) < byte_width:
        out.extend(bytes(byte_width - len(out)))
    return bytes(out[:byte_width])


def bytes_to_words(data: bytes, bit_width: int, word_bits: int) -> list[int]:
    """
    Decode the layout produced by :func:`words_to_bytes`.

    Bytes past `ceil(bit_width / 8)` are ignored, as are bits at or above
    `bit_width` in the last used byte.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError("data must be bytes-like")
    needed = bitmasks.byte_count(bit_width)
    if len(data) < needed:
        raise TruncatedDataError(needed, len(data))

    word_bytes = word_bits // const.BITS_PER_BYTE
    count = bitmasks.word_count(bit_width, word_bits)
    raw = bytes(data[:needed]).ljust(count * word_bytes, b"\x00")

    words = [
        int.from_bytes(raw[i * word_bytes : (i + 1) * word_bytes], "little")
        for i in range(count)
    ]
    if words:
        words[-1] &= bitmasks.tail_mask(bit_width, word_bits)
    return words


def format_names(names: Iterable[str]) -> str:
    """Render flag names as `"A, B"`, or `"None"` when there are none."""
    joined = const.NAME_JOINER.join(names)
    return joined or const.NONE_NAME


def split_names(text: str) -> list[str]:
    """
    Split the text form back into names.

    Whitespace around names is trimmed. Empty entries and `"None"` (any case)
    are dropped, so blank text and `"None"` mean no flags.
    """
    if not isinstance(text, str):
        raise FlagsDecodeError(f"Expected str, got {type(text).__name__}")
    none = const.NONE_NAME.casefold()
    names = []
    for part in text.split(const.NAME_SEPARATOR):
        name = part.strip()
        if name and name.casefold() != none:
            names.append(name)
    return names


def b64_encode(data: bytes) -> str:
    """Carry encoded flag bytes in text channels as padded standard base64."""
    return base64.b64encode(data).decode("ascii")


def b64_decode(text: str) -> bytes:
    """Reverse :func:`b64_encode`; non-base64 input raises FlagsDecodeError."""
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, ValueError, UnicodeEncodeError) as e:
        raise FlagsDecodeError("Invalid base64 flags data") from e
