"""Big flags constants."""

from typing import Final

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
BITS_PER_BYTE: Final[int] = 8
DEFAULT_WORD_BITS: Final[int] = 64  # uint64 words

# ---------------------------------------------------------------------------
# Text form
# ---------------------------------------------------------------------------
NONE_NAME: Final[str] = "None"
NAME_SEPARATOR: Final[str] = ","
NAME_JOINER: Final[str] = ", "
