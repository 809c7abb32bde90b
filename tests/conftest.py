import pytest

from big_flags import (
    BigFlags,
    DescriptorCache,
    FlagSetDescriptor,
    StaticDeclarationProvider,
)

from .helpers.factories import descriptor


@pytest.fixture
def sparse_descriptor() -> FlagSetDescriptor:
    """[A, B(pin=5), C] => A=0, B=5, C=1, bit_width 6."""
    return descriptor("sparse", ["A", ("B", 5), "C"])


@pytest.fixture
def wide_descriptor() -> FlagSetDescriptor:
    """Auto flags F0..F69 plus a pin at 199; spans several 64-bit words."""
    return descriptor("wide", [f"F{i}" for i in range(70)] + [("Top", 199)])


@pytest.fixture
def static_provider() -> StaticDeclarationProvider:
    return StaticDeclarationProvider(
        {
            "sparse": ["A", ("B", 5), "C"],
            "conflict": [("A", 0), ("B", 0)],
            "negative": ["A", ("B", -1)],
        }
    )


@pytest.fixture
def cache(static_provider: StaticDeclarationProvider) -> DescriptorCache:
    return DescriptorCache(static_provider)


@pytest.fixture
def big_flags() -> BigFlags:
    return BigFlags()
