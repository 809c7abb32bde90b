from __future__ import annotations


class BigFlagsError(Exception):
    """Base class for all big flags errors."""


class InvalidIndexError(BigFlagsError, ValueError):
    """Raised when a flag pins a bit index that is negative or not an integer."""

    def __init__(self, name: str, index: object) -> None:
        super().__init__(
            f"Flag '{name}' has invalid bit index {index!r}; "
            "bit index must be a non-negative integer"
        )
        self.name = name
        self.index = index


class DuplicateIndexError(BigFlagsError, ValueError):
    """Raised when two flags of the same owner pin the same bit index."""

    def __init__(self, index: int, first: str, second: str) -> None:
        super().__init__(
            f"Flags '{first}' and '{second}' both pin bit index {index}"
        )
        self.index = index
        self.first = first
        self.second = second


class DuplicateFlagNameError(BigFlagsError, ValueError):
    """Raised when an owner declares the same flag name more than once."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Flag '{name}' is declared more than once")
        self.name = name


class UnknownFlagError(BigFlagsError, LookupError):
    """Raised when a flag name is not defined by the descriptor."""

    def __init__(self, name: str, owner: object = None) -> None:
        where = f" in {_owner_name(owner)}" if owner is not None else ""
        super().__init__(f"'{name}' is not a defined flag name{where}")
        self.name = name
        self.owner = owner


class DescriptorMismatchError(BigFlagsError, TypeError):
    """Raised when combining values that were built from different descriptors."""


class TruncatedDataError(BigFlagsError, ValueError):
    """Raised when encoded flag bytes are shorter than the descriptor requires."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Flag data must be at least {expected} bytes, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class FlagsDecodeError(BigFlagsError, ValueError):
    """Raised when a text or JSON flags representation cannot be decoded."""


def _owner_name(owner: object) -> str:
    return getattr(owner, "__qualname__", None) or repr(owner)
