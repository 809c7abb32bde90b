# ruff: noqa: RUF022
"""
Big flags: stable bit layouts for named flags, stored in arbitrary-width values.

Public entrypoints:
- :class:`big_flags.registry.BigFlags`
- :class:`big_flags.descriptor.DescriptorCache`
- :class:`big_flags.value.BigFlagsValue`

Flags are declared on an owner (usually with :func:`big_flags.declarations.flag`),
given bit indices once per owner, and combined in values that serialize to a
fixed little-endian byte layout.
"""

from __future__ import annotations

from . import bitmasks, codec, constants
from .allocator import FlagIndexAssignment, allocate_bit_indices
from .collection import BigFlagsCollection
from .declarations import (
    ClassDeclarationProvider,
    DeclarationProvider,
    FlagDeclaration,
    StaticDeclarationProvider,
    flag,
)
from .descriptor import DescriptorCache, FlagSetDescriptor
from .errors import (
    BigFlagsError,
    DescriptorMismatchError,
    DuplicateFlagNameError,
    DuplicateIndexError,
    FlagsDecodeError,
    InvalidIndexError,
    TruncatedDataError,
    UnknownFlagError,
)
from .registry import BigFlags, BigFlagsConfig
from .value import BigFlagsValue

__all__ = [
    # Facade
    "BigFlags",
    "BigFlagsConfig",
    # Declarations
    "ClassDeclarationProvider",
    "DeclarationProvider",
    "FlagDeclaration",
    "StaticDeclarationProvider",
    "flag",
    # Allocation
    "FlagIndexAssignment",
    "allocate_bit_indices",
    # Descriptors
    "DescriptorCache",
    "FlagSetDescriptor",
    # Values
    "BigFlagsCollection",
    "BigFlagsValue",
    # Errors
    "BigFlagsError",
    "DescriptorMismatchError",
    "DuplicateFlagNameError",
    "DuplicateIndexError",
    "FlagsDecodeError",
    "InvalidIndexError",
    "TruncatedDataError",
    "UnknownFlagError",
    # Modules
    "bitmasks",
    "codec",
    "constants",
]
