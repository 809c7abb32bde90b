from __future__ import annotations

import json
import threading
from collections.abc import Callable, Hashable, Iterator

from .descriptor import FlagSetDescriptor
from .errors import FlagsDecodeError, UnknownFlagError
from .value import BigFlagsValue


def owner_name(owner: Hashable) -> str:
    """Key an owner is stored under in the JSON form: its `__name__`, else `str()`."""
    return getattr(owner, "__name__", None) or str(owner)


class BigFlagsCollection:
    """
    Flags of several owners kept side by side, at most one value per owner.

    Values are copied on the way in and out, so mutating a value obtained from
    or given to the collection never changes the collection itself.
    """

    def __init__(self) -> None:
        self._flags: dict[Hashable, BigFlagsValue] = {}
        self._lock = threading.Lock()

    def add(self, value: BigFlagsValue) -> None:
        """Merge `value` into the owner's current flags (bitwise OR)."""
        owner = value.descriptor.owner
        with self._lock:
            existing = self._flags.get(owner)
            self._flags[owner] = (
                value.copy() if existing is None else existing.union(value)
            )

    def set(self, value: BigFlagsValue) -> None:
        """Replace the owner's flags with `value`."""
        with self._lock:
            self._flags[value.descriptor.owner] = value.copy()

    def remove(self, value: BigFlagsValue) -> None:
        """Clear the flags set in `value`; no-op when the owner is absent."""
        owner = value.descriptor.owner
        with self._lock:
            existing = self._flags.get(owner)
            if existing is not None:
                self._flags[owner] = existing.difference(value)

    def has(self, value: BigFlagsValue) -> bool:
        """True if every flag set in `value` is present for its owner."""
        existing = self._flags.get(value.descriptor.owner)
        if existing is None:
            return False
        return existing.contains(value)

    def get(self, owner: Hashable) -> BigFlagsValue:
        try:
            return self._flags[owner].copy()
        except KeyError:
            raise KeyError(
                f"No flags for owner {owner!r} in the collection"
            ) from None

    def try_get(self, owner: Hashable) -> BigFlagsValue | None:
        value = self._flags.get(owner)
        return value.copy() if value is not None else None

    def discard(self, owner: Hashable) -> bool:
        with self._lock:
            return self._flags.pop(owner, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._flags.clear()

    def __contains__(self, owner: object) -> bool:
        return owner in self._flags

    def __len__(self) -> int:
        return len(self._flags)

    def __iter__(self) -> Iterator[tuple[Hashable, BigFlagsValue]]:
        with self._lock:
            items = [(owner, value.copy()) for owner, value in self._flags.items()]
        return iter(items)

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def to_json(self) -> str:
        """
        Encode as a JSON object mapping each owner's name to `str(value)`.

        Raises ValueError when two owners share a name, since the object could
        not be decoded back unambiguously.
        """
        out: dict[str, str] = {}
        for owner, value in self:
            key = owner_name(owner)
            if key in out:
                raise ValueError(f"Owner name {key!r} is used by more than one owner")
            out[key] = str(value)
        return json.dumps(out)

    @classmethod
    def from_json(
        cls,
        text: str,
        resolve_owner: Callable[[str], FlagSetDescriptor | None],
    ) -> BigFlagsCollection:
        """
        Decode :meth:`to_json` output.

        `resolve_owner` maps an owner name to its descriptor, or None when the
        name is unknown. Flag names are matched case-sensitively; an empty
        string or `"None"` entries mean no flags.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise FlagsDecodeError("Flags collection JSON is not valid JSON") from e
        if not isinstance(data, dict):
            raise FlagsDecodeError(
                f"Expected JSON object for flags collection, got {type(data).__name__}"
            )

        collection = cls()
        for name, flags_text in data.items():
            if not name:
                raise FlagsDecodeError("Owner name cannot be empty")
            descriptor = resolve_owner(name)
            if descriptor is None:
                raise FlagsDecodeError(f"Could not resolve owner {name!r}")
            if not isinstance(flags_text, str):
                raise FlagsDecodeError(
                    f"Expected string flags for owner {name!r}, "
                    f"got {type(flags_text).__name__}"
                )
            try:
                value = BigFlagsValue.parse(descriptor, flags_text, ignore_case=False)
            except UnknownFlagError as e:
                raise FlagsDecodeError(
                    f"Unknown flag name {e.name!r} for owner {name!r}"
                ) from e
            except ValueError as e:
                raise FlagsDecodeError(
                    f"Invalid flags {flags_text!r} for owner {name!r}"
                ) from e
            collection.add(value)
        return collection
