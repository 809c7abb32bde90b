from __future__ import annotations

import logging
import threading
from collections.abc import Hashable, Iterator, Sequence
from dataclasses import dataclass, field

from . import bitmasks
from . import constants as const
from .allocator import FlagIndexAssignment, allocate_bit_indices, bit_width_of
from .declarations import ClassDeclarationProvider, DeclarationProvider, FlagDeclaration
from .errors import (
    DuplicateFlagNameError,
    DuplicateIndexError,
    InvalidIndexError,
    UnknownFlagError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, eq=False)
class FlagSetDescriptor:
    """
    Immutable bit layout for the flags of one owner.

    Assignments are kept in declaration order. Descriptors compare by identity:
    two values are compatible only if they reference the same descriptor.

    Prefer :meth:`build`, which runs the allocator. Constructing directly from
    assignments is supported, but names and indices must still be unique and
    indices non-negative.
    """

    owner: Hashable
    assignments: tuple[FlagIndexAssignment, ...]
    word_bits: int = const.DEFAULT_WORD_BITS

    bit_width: int = field(init=False)
    _by_name: dict[str, int] = field(init=False, repr=False)
    _by_folded: dict[str, str] = field(init=False, repr=False)
    _by_index: dict[int, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        bitmasks.validate_word_bits(self.word_bits)

        by_name: dict[str, int] = {}
        by_index: dict[int, str] = {}
        for a in self.assignments:
            if isinstance(a.index, bool) or not isinstance(a.index, int) or a.index < 0:
                raise InvalidIndexError(a.name, a.index)
            if a.name in by_name:
                raise DuplicateFlagNameError(a.name)
            if a.index in by_index:
                raise DuplicateIndexError(a.index, by_index[a.index], a.name)
            by_name[a.name] = a.index
            by_index[a.index] = a.name

        object.__setattr__(self, "bit_width", bit_width_of(self.assignments))
        object.__setattr__(self, "_by_name", by_name)
        object.__setattr__(
            self, "_by_folded", {a.name.casefold(): a.name for a in self.assignments}
        )
        object.__setattr__(self, "_by_index", by_index)

    @staticmethod
    def build(
        owner: Hashable,
        declarations: Sequence[FlagDeclaration],
        *,
        word_bits: int = const.DEFAULT_WORD_BITS,
    ) -> FlagSetDescriptor:
        return FlagSetDescriptor(
            owner=owner,
            assignments=allocate_bit_indices(declarations),
            word_bits=word_bits,
        )

    @property
    def byte_width(self) -> int:
        return bitmasks.byte_count(self.bit_width)

    @property
    def word_count(self) -> int:
        return bitmasks.word_count(self.bit_width, self.word_bits)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.assignments)

    def resolve(self, name: str, *, ignore_case: bool = False) -> str:
        """Return the canonical flag name, or raise UnknownFlagError."""
        if name in self._by_name:
            return name
        if ignore_case:
            canonical = self._by_folded.get(name.casefold())
            if canonical is not None:
                return canonical
        raise UnknownFlagError(name, self.owner)

    def index_of(self, name: str, *, ignore_case: bool = False) -> int:
        return self._by_name[self.resolve(name, ignore_case=ignore_case)]

    def name_at(self, index: int) -> str | None:
        return self._by_index.get(index)

    def is_defined(self, name: str, *, ignore_case: bool = False) -> bool:
        try:
            self.resolve(name, ignore_case=ignore_case)
        except UnknownFlagError:
            return False
        return True

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._by_name

    def __len__(self) -> int:
        return len(self.assignments)

    def __iter__(self) -> Iterator[FlagIndexAssignment]:
        return iter(self.assignments)


class DescriptorCache:
    """
    Builds each owner's descriptor once and publishes it for the cache lifetime.

    Lookups of published descriptors do not lock. First-time builds are
    serialized so concurrent callers for the same owner all observe the one
    descriptor that won. Failed builds publish nothing.

    The build lock is re-entrant: a provider may resolve other owners through
    the same cache from inside `declarations_for`. A provider that asks for the
    owner currently being built recurses without end.
    """

    def __init__(
        self,
        provider: DeclarationProvider | None = None,
        *,
        word_bits: int = const.DEFAULT_WORD_BITS,
    ) -> None:
        self.provider: DeclarationProvider = (
            provider if provider is not None else ClassDeclarationProvider()
        )
        self.word_bits = bitmasks.validate_word_bits(word_bits)
        self._descriptors: dict[Hashable, FlagSetDescriptor] = {}
        self._lock = threading.RLock()

    def get_or_build(self, owner: Hashable) -> FlagSetDescriptor:
        descriptor = self._descriptors.get(owner)
        if descriptor is not None:
            return descriptor

        with self._lock:
            descriptor = self._descriptors.get(owner)
            if descriptor is not None:
                return descriptor

            try:
                declarations = self.provider.declarations_for(owner)
                descriptor = FlagSetDescriptor.build(
                    owner, declarations, word_bits=self.word_bits
                )
            except Exception:
                logger.warning("Failed to build flag descriptor for %r", owner)
                raise

            self._descriptors[owner] = descriptor
            logger.debug(
                "Built flag descriptor for %r: %d flags, bit_width=%d",
                owner,
                len(descriptor),
                descriptor.bit_width,
            )
            return descriptor

    def peek(self, owner: Hashable) -> FlagSetDescriptor | None:
        return self._descriptors.get(owner)

    def clear(self) -> None:
        with self._lock:
            self._descriptors.clear()

    def __contains__(self, owner: object) -> bool:
        return owner in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)
