from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .declarations import FlagDeclaration
from .errors import DuplicateFlagNameError, DuplicateIndexError, InvalidIndexError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FlagIndexAssignment:
    declaration: FlagDeclaration
    index: int

    @property
    def name(self) -> str:
        return self.declaration.name


def _validate_explicit_index(declaration: FlagDeclaration) -> None:
    index = declaration.explicit_index
    if index is None:
        return
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise InvalidIndexError(declaration.name, index)


def allocate_bit_indices(
    declarations: Sequence[FlagDeclaration],
) -> tuple[FlagIndexAssignment, ...]:
    """
    Assign a unique, non-negative bit index to every declaration.

    Pinned declarations keep their explicit index. The rest are packed into the
    lowest free indices in declaration order: a cursor starts at 0, skips any
    pinned index, takes the first free value, then moves one past it.

    Raises:
        InvalidIndexError: an explicit index is negative (checked first).
        DuplicateFlagNameError: two declarations share a name.
        DuplicateIndexError: two declarations pin the same index.
    """
    for declaration in declarations:
        _validate_explicit_index(declaration)

    seen_names: set[str] = set()
    for declaration in declarations:
        if declaration.name in seen_names:
            raise DuplicateFlagNameError(declaration.name)
        seen_names.add(declaration.name)

    pinned: dict[int, FlagDeclaration] = {}
    auto: list[FlagDeclaration] = []
    for declaration in sorted(declarations, key=lambda d: d.order):
        if declaration.explicit_index is None:
            auto.append(declaration)
            continue
        other = pinned.get(declaration.explicit_index)
        if other is not None:
            raise DuplicateIndexError(
                declaration.explicit_index, other.name, declaration.name
            )
        pinned[declaration.explicit_index] = declaration

    assigned: dict[str, int] = {d.name: i for i, d in pinned.items()}
    cursor = 0
    for declaration in auto:
        while cursor in pinned:
            cursor += 1
        assigned[declaration.name] = cursor
        cursor += 1

    logger.debug(
        "Allocated %d flag indices (%d pinned, %d auto)",
        len(assigned),
        len(pinned),
        len(auto),
    )

    return tuple(
        FlagIndexAssignment(declaration=d, index=assigned[d.name])
        for d in sorted(declarations, key=lambda d: d.order)
    )


def bit_width_of(assignments: Sequence[FlagIndexAssignment]) -> int:
    """Minimum number of bits that can address every assigned index."""
    if not assignments:
        return 0
    return max(a.index for a in assignments) + 1
