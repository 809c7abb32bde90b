from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass

from . import bitmasks
from . import constants as const
from .collection import BigFlagsCollection, owner_name
from .declarations import DeclarationProvider
from .descriptor import DescriptorCache, FlagSetDescriptor
from .value import BigFlagsValue


@dataclass(frozen=True, slots=True)
class BigFlagsConfig:
    """
    Configuration for a :class:`BigFlags` instance.
    """

    word_bits: int = const.DEFAULT_WORD_BITS  # storage word width; wire format is unaffected
    ignore_case: bool = True  # default for text parsing

    def __post_init__(self) -> None:
        bitmasks.validate_word_bits(self.word_bits)


class BigFlags:
    """
    Facade over the descriptor cache and value constructors.

    Owns one :class:`DescriptorCache`; owners are resolved through the injected
    declaration provider (class `flag()` markers by default).
    """

    def __init__(
        self,
        *,
        config: BigFlagsConfig | None = None,
        provider: DeclarationProvider | None = None,
    ) -> None:
        self.config = config or BigFlagsConfig()
        self.cache = DescriptorCache(provider, word_bits=self.config.word_bits)

    def descriptor(self, owner: Hashable) -> FlagSetDescriptor:
        return self.cache.get_or_build(owner)

    def names(self, owner: Hashable) -> tuple[str, ...]:
        return self.descriptor(owner).names

    def none(self, owner: Hashable) -> BigFlagsValue:
        return BigFlagsValue(self.descriptor(owner))

    def of(self, owner: Hashable, *names: str) -> BigFlagsValue:
        return BigFlagsValue.from_names(self.descriptor(owner), names)

    def from_bytes(self, owner: Hashable, data: bytes) -> BigFlagsValue:
        return BigFlagsValue.from_bytes(self.descriptor(owner), data)

    def parse(
        self, owner: Hashable, text: str, *, ignore_case: bool | None = None
    ) -> BigFlagsValue:
        if ignore_case is None:
            ignore_case = self.config.ignore_case
        return BigFlagsValue.parse(self.descriptor(owner), text, ignore_case=ignore_case)

    def collection_from_json(self, text: str, *owners: Hashable) -> BigFlagsCollection:
        """
        Decode :meth:`BigFlagsCollection.to_json` output.

        Only the given `owners` can be resolved; they are matched by the name
        :meth:`BigFlagsCollection.to_json` writes for them.
        """
        by_name = {owner_name(owner): owner for owner in owners}

        def resolve(name: str) -> FlagSetDescriptor | None:
            if name not in by_name:
                return None
            return self.descriptor(by_name[name])

        return BigFlagsCollection.from_json(text, resolve)
