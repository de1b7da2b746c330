"""
Tests for the LRU cache and the term grade cache invalidation rules
"""
from datetime import date

from gradebook.core.cache import LRUCache, TermGradeCache
from gradebook.models.grading import TermGradeResult


class TestLRUCache:
    def test_evicts_least_recently_used(self):
        cache = LRUCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_stats(self):
        cache = LRUCache(max_size=10)
        cache.set("a", 1)
        cache.get("a")
        cache.get("missing")

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["current_size"] == 1


class TestTermGradeCache:
    def test_disabled_cache_stores_nothing(self):
        cache = TermGradeCache(enabled=False)
        key = cache.make_key("e1", "a1", "t1")
        cache.set(key, TermGradeResult(grade=4.0))
        assert cache.get(key) is None

    def test_grade_write_invalidates_enrollment_term(self):
        cache = TermGradeCache(enabled=True)
        k1 = cache.make_key("e1", "a1", "t1")
        k2 = cache.make_key("e1", "a1", "t1", date(2025, 3, 1))
        k3 = cache.make_key("e2", "a1", "t1")
        for key in (k1, k2, k3):
            cache.set(key, TermGradeResult(grade=4.0))

        assert cache.invalidate_enrollment_term("e1", "t1") == 2
        assert cache.get(k1) is None
        assert cache.get(k2) is None
        assert cache.get(k3) is not None

    def test_plan_write_invalidates_term(self):
        cache = TermGradeCache(enabled=True)
        cache.set(cache.make_key("e1", "a1", "t1"), TermGradeResult(grade=4.0))
        cache.set(cache.make_key("e2", "a1", "t1"), TermGradeResult(grade=3.0))
        cache.set(cache.make_key("e1", "a1", "t2"), TermGradeResult(grade=2.0))

        assert cache.invalidate_term("t1") == 2
        assert cache.get(cache.make_key("e1", "a1", "t2")).grade == 2.0
