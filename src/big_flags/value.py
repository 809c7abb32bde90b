from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Iterator

from . import bitmasks, codec
from .descriptor import FlagSetDescriptor
from .errors import DescriptorMismatchError, FlagsDecodeError


class BigFlagsValue:
    """
    Arbitrary-width set of flags, interpreted through a :class:`FlagSetDescriptor`.

    Storage is a list of `descriptor.word_bits`-wide words covering
    `descriptor.bit_width` bits; bits at or above the width are always zero.

    `set`, `clear`, `toggle` and the in-place operators (`|=`, `&=`, `^=`,
    `-=`) mutate the value. `union`, `intersect`, `difference`,
    `symmetric_difference` and their operators (`|`, `&`, `-`, `^`) return
    new values and leave both operands untouched, as does `~`, which
    complements every bit below the width.

    Values are mutable and therefore unhashable; use :meth:`to_int` or
    :meth:`to_bytes` for a hashable key.
    """

    __slots__ = ("_words", "descriptor")

    def __init__(self, descriptor: FlagSetDescriptor) -> None:
        self.descriptor = descriptor
        self._words: list[int] = [0] * descriptor.word_count

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_bytes(cls, descriptor: FlagSetDescriptor, data: bytes) -> BigFlagsValue:
        """Decode `to_bytes` output; extra trailing bytes are ignored."""
        value = cls(descriptor)
        value._words = codec.bytes_to_words(
            data, descriptor.bit_width, descriptor.word_bits
        )
        return value

    @classmethod
    def from_names(
        cls,
        descriptor: FlagSetDescriptor,
        names: Iterable[str],
        *,
        ignore_case: bool = False,
    ) -> BigFlagsValue:
        value = cls(descriptor)
        for name in names:
            value._set_index(descriptor.index_of(name, ignore_case=ignore_case))
        return value

    @classmethod
    def from_int(cls, descriptor: FlagSetDescriptor, raw: int) -> BigFlagsValue:
        if raw < 0:
            raise ValueError("Flags value must be non-negative")
        if raw.bit_length() > descriptor.bit_width:
            raise ValueError(
                f"Flags value needs {raw.bit_length()} bits, "
                f"descriptor is {descriptor.bit_width} bits wide"
            )
        value = cls(descriptor)
        mask = bitmasks.word_mask(descriptor.word_bits)
        for i in range(descriptor.word_count):
            value._words[i] = (raw >> (i * descriptor.word_bits)) & mask
        return value

    @classmethod
    def parse(
        cls, descriptor: FlagSetDescriptor, text: str, *, ignore_case: bool = True
    ) -> BigFlagsValue:
        """
        Parse the text form produced by `str(value)`.

        Accepts `"A, B"`, `"None"` and plain decimal text. `str(value)` falls
        back to decimal when a bit in an unassigned gap is set, so decimal
        text is read with :meth:`from_int`.
        """
        if isinstance(text, str) and text.strip().isdecimal():
            return cls.from_int(descriptor, int(text))
        return cls.from_names(
            descriptor, codec.split_names(text), ignore_case=ignore_case
        )

    @classmethod
    def from_json(cls, descriptor: FlagSetDescriptor, text: str) -> BigFlagsValue:
        """Decode a JSON string token (or `null`) holding the text form."""
        try:
            token = json.loads(text)
        except json.JSONDecodeError as e:
            raise FlagsDecodeError("Flags JSON is not valid JSON") from e
        if token is None:
            return cls(descriptor)
        if not isinstance(token, str):
            raise FlagsDecodeError(
                f"Expected JSON string for flags, got {type(token).__name__}"
            )
        return cls.parse(descriptor, token, ignore_case=True)

    @classmethod
    def from_b64(cls, descriptor: FlagSetDescriptor, text: str) -> BigFlagsValue:
        """Decode base64 text carrying :meth:`to_bytes` output."""
        return cls.from_bytes(descriptor, codec.b64_decode(text))

    def copy(self) -> BigFlagsValue:
        clone = BigFlagsValue(self.descriptor)
        clone._words = list(self._words)
        return clone

    # ------------------------------------------------------------------
    # Single flags
    # ------------------------------------------------------------------

    def _has_index(self, index: int) -> bool:
        word, mask = bitmasks.locate(index, self.descriptor.word_bits)
        return bool(self._words[word] & mask)

    def _set_index(self, index: int) -> None:
        word, mask = bitmasks.locate(index, self.descriptor.word_bits)
        self._words[word] |= mask

    def test(self, name: str) -> bool:
        return self._has_index(self.descriptor.index_of(name))

    def set(self, name: str) -> None:
        self._set_index(self.descriptor.index_of(name))

    def clear(self, name: str) -> None:
        word, mask = bitmasks.locate(
            self.descriptor.index_of(name), self.descriptor.word_bits
        )
        self._words[word] &= ~mask

    def toggle(self, name: str) -> None:
        word, mask = bitmasks.locate(
            self.descriptor.index_of(name), self.descriptor.word_bits
        )
        self._words[word] ^= mask

    def has_all(self, *names: str) -> bool:
        return all(self.test(name) for name in names)

    def has_any(self, *names: str) -> bool:
        return any(self.test(name) for name in names)

    # ------------------------------------------------------------------
    # Whole-value operations
    # ------------------------------------------------------------------

    def _require_same(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            raise TypeError(
                f"Expected BigFlagsValue, got {type(other).__name__}"
            )
        if other.descriptor is not self.descriptor:
            raise DescriptorMismatchError(
                "Cannot combine flags of different descriptors: "
                f"{self.descriptor.owner!r} and {other.descriptor.owner!r}"
            )
        return other

    def _combined(
        self, other: BigFlagsValue, op: Callable[[int, int], int]
    ) -> BigFlagsValue:
        other = self._require_same(other)
        result = BigFlagsValue(self.descriptor)
        result._words = [op(a, b) for a, b in zip(self._words, other._words)]
        return result

    def union(self, other: BigFlagsValue) -> BigFlagsValue:
        return self._combined(other, lambda a, b: a | b)

    def intersect(self, other: BigFlagsValue) -> BigFlagsValue:
        return self._combined(other, lambda a, b: a & b)

    def difference(self, other: BigFlagsValue) -> BigFlagsValue:
        return self._combined(other, lambda a, b: a & ~b)

    def symmetric_difference(self, other: BigFlagsValue) -> BigFlagsValue:
        return self._combined(other, lambda a, b: a ^ b)

    def contains(self, other: BigFlagsValue) -> bool:
        """True if every flag set in `other` is also set here."""
        other = self._require_same(other)
        return all((a & b) == b for a, b in zip(self._words, other._words))

    def __invert__(self) -> BigFlagsValue:
        """Complement every bit below `bit_width`, unassigned gaps included."""
        word_bits = self.descriptor.word_bits
        full = bitmasks.word_mask(word_bits)
        result = BigFlagsValue(self.descriptor)
        result._words = [~word & full for word in self._words]
        if result._words:
            result._words[-1] &= bitmasks.tail_mask(self.descriptor.bit_width, word_bits)
        return result

    def __or__(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        return self.union(other)

    def __and__(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        return self.intersect(other)

    def __sub__(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        return self.difference(other)

    def __xor__(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        return self.symmetric_difference(other)

    def __ior__(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        self._words = self.union(other)._words
        return self

    def __iand__(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        self._words = self.intersect(other)._words
        return self

    def __isub__(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        self._words = self.difference(other)._words
        return self

    def __ixor__(self, other: object) -> BigFlagsValue:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        self._words = self.symmetric_difference(other)._words
        return self

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not any(self._words)

    def __bool__(self) -> bool:
        return not self.is_empty

    def __len__(self) -> int:
        return sum(word.bit_count() for word in self._words)

    def set_indices(self) -> list[int]:
        word_bits = self.descriptor.word_bits
        return [
            i * word_bits + bit
            for i, word in enumerate(self._words)
            for bit in bitmasks.iter_set_bits(word)
        ]

    def set_names(self) -> list[str]:
        """Names of the set flags, in declaration order."""
        return [a.name for a in self.descriptor if self._has_index(a.index)]

    def __iter__(self) -> Iterator[str]:
        return iter(self.set_names())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BigFlagsValue):
            return NotImplemented
        return other.descriptor is self.descriptor and other._words == self._words

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        return codec.words_to_bytes(
            self._words, self.descriptor.byte_width, self.descriptor.word_bits
        )

    def to_int(self) -> int:
        word_bits = self.descriptor.word_bits
        return sum(word << (i * word_bits) for i, word in enumerate(self._words))

    def to_binary_string(self) -> str:
        """Most significant set bit first, without leading zeros; "0" when empty."""
        return format(self.to_int(), "b")

    def to_b64(self) -> str:
        return codec.b64_encode(self.to_bytes())

    def to_json(self) -> str:
        return json.dumps(str(self))

    def __str__(self) -> str:
        indices = self.set_indices()
        names = [self.descriptor.name_at(i) for i in indices]
        if any(name is None for name in names):
            # Set bits in unassigned gaps have no name to render
            return str(self.to_int())
        return codec.format_names(self.set_names())

    def __repr__(self) -> str:
        owner = getattr(self.descriptor.owner, "__name__", self.descriptor.owner)
        return f"BigFlagsValue({owner}: {self})"
