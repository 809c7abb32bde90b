"""
Flag declarations and the providers that discover them.

A provider turns an owner (usually a class) into an ordered sequence of
:class:`FlagDeclaration`. The descriptor cache treats that order as
authoritative and only validates the explicit indices it carries.

Two providers ship with the package:

- :class:`ClassDeclarationProvider` reads :func:`flag` markers from a class body.
- :class:`StaticDeclarationProvider` serves an explicit registration table.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol, Union

FlagEntry = Union[str, tuple[str, Union[int, None]]]


@dataclass(frozen=True, slots=True)
class FlagDeclaration:
    """A named flag as declared by its owner."""

    name: str
    order: int
    explicit_index: int | None = None

    @property
    def is_pinned(self) -> bool:
        return self.explicit_index is not None


class DeclarationProvider(Protocol):
    def declarations_for(self, owner: Hashable) -> Sequence[FlagDeclaration]: ...


class FlagField:
    """
    Class-body marker for a flag.

    Created with :func:`flag`; the attribute name becomes the flag name.
    """

    __slots__ = ("index", "name")

    def __init__(self, index: int | None = None) -> None:
        self.index = index
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"<flag name={self.name!r} index={self.index!r}>"


def flag(index: int | None = None) -> FlagField:
    """
    Declare a flag on a class body, optionally pinning its bit index.

        class Permissions:
            read = flag()
            write = flag()
            admin = flag(index=63)
    """
    return FlagField(index)


class ClassDeclarationProvider:
    """
    Discover flags declared with :func:`flag` on a class and its bases.

    Names are ordered by where they are first defined: bases first (most basic
    first), then the class itself, each in class-body definition order. Every
    name is resolved like normal attribute lookup, so a subclass may override
    a base flag (its index wins, its position stays) or hide it with a
    non-flag attribute. Each attribute name is its own flag, including aliases
    (`b = a`).
    """

    def declarations_for(self, owner: Hashable) -> Sequence[FlagDeclaration]:
        if not isinstance(owner, type):
            raise TypeError(
                f"{type(self).__name__} expects a class, got {type(owner).__name__}"
            )

        ordered: dict[str, None] = {}
        for klass in reversed(owner.__mro__):
            if klass is object:
                continue
            for attr_name in vars(klass):
                ordered.setdefault(attr_name, None)

        found: list[tuple[str, int | None]] = []
        for attr_name in ordered:
            value = _lookup(owner, attr_name)
            if isinstance(value, FlagField):
                found.append((attr_name, value.index))

        return tuple(
            FlagDeclaration(name=name, order=order, explicit_index=index)
            for order, (name, index) in enumerate(found)
        )


def _lookup(owner: type, attr_name: str) -> object:
    for klass in owner.__mro__:
        namespace = vars(klass)
        if attr_name in namespace:
            return namespace[attr_name]
    return None


class StaticDeclarationProvider:
    """
    Serve declarations from an explicit registration table.

    Entries are either bare names (auto index) or `(name, index)` pairs, where
    `index` may be None.
    """

    def __init__(
        self, table: Mapping[Hashable, Iterable[FlagEntry]] | None = None
    ) -> None:
        self._table: dict[Hashable, tuple[FlagDeclaration, ...]] = {}
        for owner, entries in (table or {}).items():
            self.register(owner, entries)

    def register(self, owner: Hashable, entries: Iterable[FlagEntry]) -> None:
        self._table[owner] = _to_declarations(entries)

    def __contains__(self, owner: object) -> bool:
        return owner in self._table

    def declarations_for(self, owner: Hashable) -> Sequence[FlagDeclaration]:
        try:
            return self._table[owner]
        except KeyError:
            raise KeyError(f"No flags registered for owner {owner!r}") from None


def _to_declarations(entries: Iterable[FlagEntry]) -> tuple[FlagDeclaration, ...]:
    out: list[FlagDeclaration] = []
    for order, entry in enumerate(entries):
        if isinstance(entry, str):
            name, index = entry, None
        else:
            name, index = entry
        out.append(FlagDeclaration(name=name, order=order, explicit_index=index))
    return tuple(out)
