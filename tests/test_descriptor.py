"""
Unit tests for big_flags.descriptor.

Tests cover:
- FlagSetDescriptor lookups
- DescriptorCache build-once semantics, concurrency and failure handling
"""

import logging
import threading
from collections.abc import Hashable, Sequence

import pytest

from big_flags import (
    DescriptorCache,
    DuplicateFlagNameError,
    DuplicateIndexError,
    FlagDeclaration,
    FlagIndexAssignment,
    FlagSetDescriptor,
    InvalidIndexError,
    StaticDeclarationProvider,
    UnknownFlagError,
)
from tests.helpers.factories import Permissions, declarations


class TestFlagSetDescriptor:
    """Tests for the immutable descriptor."""

    def test_bit_and_byte_width(self, sparse_descriptor: FlagSetDescriptor) -> None:
        """Test widths derive from the maximum index."""
        assert sparse_descriptor.bit_width == 6
        assert sparse_descriptor.byte_width == 1
        assert sparse_descriptor.word_count == 1

    def test_empty(self) -> None:
        """Test a descriptor without flags."""
        d = FlagSetDescriptor.build("empty", [])
        assert d.bit_width == 0
        assert d.byte_width == 0
        assert d.word_count == 0
        assert len(d) == 0
        assert d.names == ()

    def test_names_in_declaration_order(
        self, sparse_descriptor: FlagSetDescriptor
    ) -> None:
        assert sparse_descriptor.names == ("A", "B", "C")

    def test_index_of(self, sparse_descriptor: FlagSetDescriptor) -> None:
        assert sparse_descriptor.index_of("A") == 0
        assert sparse_descriptor.index_of("B") == 5
        assert sparse_descriptor.index_of("C") == 1

    def test_index_of_unknown(self, sparse_descriptor: FlagSetDescriptor) -> None:
        with pytest.raises(UnknownFlagError, match="'Z'") as exc_info:
            sparse_descriptor.index_of("Z")
        assert exc_info.value.name == "Z"
        assert exc_info.value.owner == "sparse"

    def test_index_of_ignore_case(self, sparse_descriptor: FlagSetDescriptor) -> None:
        assert sparse_descriptor.index_of("b", ignore_case=True) == 5
        with pytest.raises(UnknownFlagError):
            sparse_descriptor.index_of("b")

    def test_resolve_returns_canonical_name(self) -> None:
        d = FlagSetDescriptor.build("o", declarations("CanFly"))
        assert d.resolve("canfly", ignore_case=True) == "CanFly"

    def test_name_at(self, sparse_descriptor: FlagSetDescriptor) -> None:
        assert sparse_descriptor.name_at(5) == "B"
        assert sparse_descriptor.name_at(3) is None
        assert sparse_descriptor.name_at(99) is None

    def test_is_defined(self, sparse_descriptor: FlagSetDescriptor) -> None:
        assert sparse_descriptor.is_defined("A") is True
        assert sparse_descriptor.is_defined("a") is False
        assert sparse_descriptor.is_defined("a", ignore_case=True) is True
        assert sparse_descriptor.is_defined("Z", ignore_case=True) is False

    def test_contains_and_iter(self, sparse_descriptor: FlagSetDescriptor) -> None:
        assert "A" in sparse_descriptor
        assert "Z" not in sparse_descriptor
        assert 0 not in sparse_descriptor
        assert [a.index for a in sparse_descriptor] == [0, 5, 1]

    def test_is_immutable(self, sparse_descriptor: FlagSetDescriptor) -> None:
        with pytest.raises(AttributeError):
            sparse_descriptor.bit_width = 10  # type: ignore[misc]

    def test_equality_is_identity(self) -> None:
        """Test two descriptors with equal layouts are still distinct."""
        d1 = FlagSetDescriptor.build("o", declarations("A"))
        d2 = FlagSetDescriptor.build("o", declarations("A"))
        assert d1 != d2
        assert d1 == d1

    def test_invalid_word_bits(self) -> None:
        with pytest.raises(ValueError, match="multiple of 8"):
            FlagSetDescriptor.build("o", declarations("A"), word_bits=12)

    def test_direct_construction_rejects_duplicate_index(self) -> None:
        """Test hand-built assignments cannot share a bit index."""
        a, b = declarations("A", "B")
        with pytest.raises(DuplicateIndexError) as exc_info:
            FlagSetDescriptor(
                "o", (FlagIndexAssignment(a, 3), FlagIndexAssignment(b, 3))
            )
        assert (exc_info.value.first, exc_info.value.second) == ("A", "B")

    def test_direct_construction_rejects_duplicate_name(self) -> None:
        a1, a2 = declarations("A", "A")
        with pytest.raises(DuplicateFlagNameError, match="'A'"):
            FlagSetDescriptor(
                "o", (FlagIndexAssignment(a1, 0), FlagIndexAssignment(a2, 1))
            )

    def test_direct_construction_rejects_negative_index(self) -> None:
        (a,) = declarations("A")
        with pytest.raises(InvalidIndexError, match="-1"):
            FlagSetDescriptor("o", (FlagIndexAssignment(a, -1),))

    def test_direct_construction(self) -> None:
        a, b = declarations("A", "B")
        d = FlagSetDescriptor(
            "o", (FlagIndexAssignment(a, 2), FlagIndexAssignment(b, 0))
        )
        assert d.bit_width == 3
        assert d.index_of("A") == 2
        assert d.name_at(0) == "B"

    def test_word_count_for_other_word_sizes(self) -> None:
        d = FlagSetDescriptor.build("o", declarations(("A", 16)), word_bits=8)
        assert d.bit_width == 17
        assert d.word_count == 3
        assert d.byte_width == 3


class TestDescriptorCache:
    """Tests for DescriptorCache.get_or_build."""

    def test_builds_from_provider(self, cache: DescriptorCache) -> None:
        d = cache.get_or_build("sparse")
        assert d.owner == "sparse"
        assert d.index_of("B") == 5
        assert d.bit_width == 6

    def test_idempotent(self, cache: DescriptorCache) -> None:
        """Test repeated calls return the same descriptor object."""
        assert cache.get_or_build("sparse") is cache.get_or_build("sparse")
        assert len(cache) == 1
        assert "sparse" in cache

    def test_peek(self, cache: DescriptorCache) -> None:
        assert cache.peek("sparse") is None
        d = cache.get_or_build("sparse")
        assert cache.peek("sparse") is d

    def test_clear(self, cache: DescriptorCache) -> None:
        d = cache.get_or_build("sparse")
        cache.clear()
        assert len(cache) == 0
        assert cache.get_or_build("sparse") is not d

    def test_duplicate_index_propagates(self, cache: DescriptorCache) -> None:
        """Test [A(pin=0), B(pin=0)] fails naming both flags."""
        with pytest.raises(DuplicateIndexError) as exc_info:
            cache.get_or_build("conflict")
        assert {exc_info.value.first, exc_info.value.second} == {"A", "B"}
        assert "conflict" not in cache

    def test_invalid_index_propagates(self, cache: DescriptorCache) -> None:
        with pytest.raises(InvalidIndexError):
            cache.get_or_build("negative")
        assert cache.peek("negative") is None

    def test_failure_is_permanent_until_fixed(self) -> None:
        """Test a failing owner keeps failing, and builds once declarations are fixed."""
        provider = StaticDeclarationProvider({"o": [("A", 0), ("B", 0)]})
        cache = DescriptorCache(provider)
        for _ in range(2):
            with pytest.raises(DuplicateIndexError):
                cache.get_or_build("o")
        provider.register("o", [("A", 0), ("B", 1)])
        assert cache.get_or_build("o").bit_width == 2

    def test_unknown_owner(self, cache: DescriptorCache) -> None:
        with pytest.raises(KeyError, match="No flags registered"):
            cache.get_or_build("missing")

    def test_failure_logs_warning(
        self, cache: DescriptorCache, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="big_flags.descriptor"):
            with pytest.raises(DuplicateIndexError):
                cache.get_or_build("conflict")
        assert "Failed to build flag descriptor for 'conflict'" in caplog.text

    def test_default_provider_reads_class_markers(self) -> None:
        cache = DescriptorCache()
        d = cache.get_or_build(Permissions)
        assert d.names == ("read", "write", "execute", "admin")
        assert d.index_of("admin") == 100
        assert d.bit_width == 101

    def test_word_bits_passed_to_descriptor(self) -> None:
        cache = DescriptorCache(word_bits=16)
        assert cache.get_or_build(Permissions).word_bits == 16

    def test_concurrent_first_access_builds_once(self) -> None:
        """Test racing callers all observe the single descriptor that was built."""
        calls = []
        gate = threading.Event()

        class SlowProvider:
            def declarations_for(self, owner: Hashable) -> Sequence[FlagDeclaration]:
                calls.append(owner)
                gate.wait(timeout=1)
                return declarations("A", "B")

        cache = DescriptorCache(SlowProvider())
        results: list[FlagSetDescriptor] = []
        lock = threading.Lock()

        def worker() -> None:
            d = cache.get_or_build("shared")
            with lock:
                results.append(d)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        gate.set()
        for t in threads:
            t.join()

        assert calls == ["shared"]
        assert len(results) == 8
        assert all(d is results[0] for d in results)

    def test_invalid_word_bits_fails_at_construction(self) -> None:
        with pytest.raises(ValueError, match="multiple of 8"):
            DescriptorCache(word_bits=12)

    def test_provider_may_resolve_other_owner(self) -> None:
        """Test a provider can build another owner through the same cache."""

        class LinkedProvider:
            def __init__(self) -> None:
                self.cache: DescriptorCache | None = None

            def declarations_for(self, owner: Hashable) -> Sequence[FlagDeclaration]:
                if owner == "child":
                    assert self.cache is not None
                    base = self.cache.get_or_build("base")
                    return declarations(*base.names, "Extra")
                return declarations("A", "B")

        provider = LinkedProvider()
        cache = DescriptorCache(provider)
        provider.cache = cache

        child = cache.get_or_build("child")
        assert child.names == ("A", "B", "Extra")
        assert "base" in cache
        assert len(cache) == 2
