"""Tests for symbol cache eviction."""

import logging

import pytest

from crashsync.config.models import SymbolCacheConfig
from crashsync.symbols.cache import SymbolCacheStore
from tests.fakes import GB, free_space_probe, make_cache_entry


def _store(cache_root, free_gb, **overrides) -> SymbolCacheStore:
    settings = {
        "enabled": True,
        "cache_root_path": cache_root,
        "max_cache_size_gb": 0,
        "min_free_space_gb": 10,
        "max_age_days": 14,
    }
    settings.update(overrides)
    return SymbolCacheStore(
        SymbolCacheConfig(**settings), free_space_probe=free_space_probe(free_gb)
    )


class TestInitializeLimits:
    """Test the free-space and size checks run by initialize()."""

    def test_age_pass_counts_toward_free_space_target(self, cache_root):
        make_cache_entry(cache_root, "twenty-days", size_bytes=5 * GB, age_days=20)
        make_cache_entry(cache_root, "two-days", size_bytes=3 * GB, age_days=2)
        store = _store(cache_root, free_gb=8, min_free_space_gb=10)

        assert store.initialize() is True

        assert not store.contains("twenty-days")
        assert not (cache_root / "twenty-days").exists()
        assert store.contains("two-days")

    def test_space_pass_reclaims_shortfall(self, cache_root):
        make_cache_entry(cache_root, "a", size_bytes=GB, age_days=5)
        make_cache_entry(cache_root, "b", size_bytes=2 * GB, age_days=4)
        make_cache_entry(cache_root, "c", size_bytes=3 * GB, age_days=3)
        store = _store(cache_root, free_gb=8, min_free_space_gb=10)

        store.initialize()

        # Shortfall of 2 GB: "a" alone is not enough, "a" + "b" is
        assert [e.label for e in store.entries] == ["c"]

    def test_not_enough_space_disables_and_clears(self, cache_root, caplog):
        make_cache_entry(cache_root, "a", size_bytes=GB, age_days=1)
        make_cache_entry(cache_root, "b", size_bytes=2 * GB, age_days=1)
        store = _store(cache_root, free_gb=1, min_free_space_gb=10)

        with caplog.at_level(logging.ERROR):
            assert store.initialize() is False

        assert store.enabled is False
        assert store.lookup("a") is None
        assert list(cache_root.iterdir()) == []
        assert "you need to free 6 GB" in caplog.text

    def test_max_size_overflow_is_reclaimed(self, cache_root):
        make_cache_entry(cache_root, "a", size_bytes=GB, age_days=5)
        make_cache_entry(cache_root, "b", size_bytes=2 * GB, age_days=4)
        make_cache_entry(cache_root, "c", size_bytes=3 * GB, age_days=3)
        store = _store(cache_root, free_gb=1000, max_cache_size_gb=4)

        store.initialize()

        assert [e.label for e in store.entries] == ["c"]
        assert store.cache_size_gb <= 4

    def test_enough_space_only_expires_old_entries(self, cache_root):
        make_cache_entry(cache_root, "old", age_days=20)
        make_cache_entry(cache_root, "recent", age_days=2)
        store = _store(cache_root, free_gb=1000)

        store.initialize()

        assert [e.label for e in store.entries] == ["recent"]

    def test_free_space_probe_failure_skips_space_check(self, cache_root):
        make_cache_entry(cache_root, "recent", size_bytes=GB, age_days=2)

        def failing_probe(path):
            raise OSError("no such device")

        store = SymbolCacheStore(
            SymbolCacheConfig(
                enabled=True, cache_root_path=cache_root, min_free_space_gb=10
            ),
            free_space_probe=failing_probe,
        )

        assert store.initialize() is True
        assert store.contains("recent")


class TestCleanup:
    """Test the two-pass cleanup."""

    @pytest.fixture
    def store(self, cache_root) -> SymbolCacheStore:
        make_cache_entry(cache_root, "a", size_bytes=GB, age_days=20)
        make_cache_entry(cache_root, "b", size_bytes=2 * GB, age_days=4)
        make_cache_entry(cache_root, "c", size_bytes=3 * GB, age_days=3)
        make_cache_entry(cache_root, "d", size_bytes=GB, age_days=1)
        cache_store = _store(cache_root, free_gb=1000)
        cache_store.initialize(enforce_limits=False)
        return cache_store

    def test_age_pass_only(self, store):
        report = store.cleanup(14)

        assert report.age_removed == ["a"]
        assert report.space_removed == []
        assert report.reclaimed_gb == 1
        assert [e.label for e in store.entries] == ["b", "c", "d"]

    def test_space_pass_oldest_first_and_stops_at_target(self, store):
        report = store.cleanup(14, target_gb=3)

        assert report.age_removed == ["a"]
        assert report.space_removed == ["b"]
        assert report.reclaimed_gb == 3
        assert [e.label for e in store.entries] == ["c", "d"]

    def test_space_pass_skipped_when_age_pass_meets_target(self, store):
        report = store.cleanup(14, target_gb=1)

        assert report.removed_labels == ["a"]

    def test_target_larger_than_cache_removes_everything(self, store):
        report = store.cleanup(30, target_gb=100)

        assert report.space_removed == ["a", "b", "c", "d"]
        assert report.reclaimed_gb == 7
        assert store.entries == []

    def test_never_removes_more_than_needed(self, store):
        report = store.cleanup(30, target_gb=4)

        # a (1) + b (2) = 3 < 4, so c is needed; d is not
        assert report.space_removed == ["a", "b", "c"]
        assert store.contains("d")

    def test_cleanup_zero_days_expires_untouched_entries(self, store):
        report = store.cleanup(0)

        assert report.age_removed == ["a", "b", "c", "d"]

    def test_cleanup_on_disabled_store_is_noop(self, cache_root):
        make_cache_entry(cache_root, "a", age_days=20)
        store = _store(cache_root, free_gb=1000, enabled=False)
        store.initialize()

        assert store.cleanup(0).removed_labels == []
        assert (cache_root / "a").is_dir()
