"""Tests for search analytics aggregations."""

import pytest

from querytrail.analytics import SearchAnalytics, rank_counts
from querytrail.exceptions import StoreError
from querytrail.schemas import QueryRecord
from querytrail.storage import InMemoryQueryStore


def add_completed(store, final_text, times=1, user_key="u1"):
    for _ in range(times):
        store.insert(QueryRecord(text=final_text, user_key=user_key, completed=True, final_text=final_text))


@pytest.fixture
def analytics(store, clock):
    return SearchAnalytics(store, clock=clock)


def test_rank_counts_orders_by_count_then_text():
    ranked = rank_counts({"b": 2, "a": 2, "c": 5, "d": 1}, 3)
    assert ranked == [("c", 5), ("a", 2), ("b", 2)]


class TestGlobalStats:

    def test_higher_count_first(self, analytics, store):
        add_completed(store, "y", times=2)
        add_completed(store, "x", times=5)

        assert analytics.global_stats(10) == [("x", 5), ("y", 2)]

    def test_incomplete_records_ignored(self, analytics, store):
        add_completed(store, "ruby")
        store.insert(QueryRecord(text="ruby on", user_key="u1"))
        assert analytics.global_stats(10) == [("ruby", 1)]

    def test_across_users(self, analytics, store):
        add_completed(store, "rails", user_key="u1")
        add_completed(store, "rails", user_key="u2")
        assert analytics.global_stats(10) == [("rails", 2)]

    def test_limit(self, analytics, store):
        for text in ("a", "b", "c"):
            add_completed(store, text)
        assert len(analytics.global_stats(2)) == 2


class TestUserStats:

    def test_only_that_user(self, analytics, store):
        add_completed(store, "rails", times=3, user_key="u1")
        add_completed(store, "django", times=4, user_key="u2")

        assert analytics.stats_for("u1") == [("rails", 3)]

    def test_blank_user(self, analytics, store):
        add_completed(store, "rails")
        assert analytics.stats_for(None) == []
        assert analytics.stats_for("") == []


class TestSuggestions:

    def test_substring_case_insensitive(self, analytics, store):
        add_completed(store, "Ruby on Rails", times=2)
        add_completed(store, "learn ruby")
        add_completed(store, "python")

        assert analytics.suggestions("RUBY") == ["Ruby on Rails", "learn ruby"]

    def test_wildcards_are_literal(self, analytics, store):
        add_completed(store, "100% coverage")
        add_completed(store, "1000 coverage")
        add_completed(store, "snake_case naming")
        add_completed(store, "snakescase naming")

        assert analytics.suggestions("0%") == ["100% coverage"]
        assert analytics.suggestions("e_c") == ["snake_case naming"]

    def test_blank_prefix(self, analytics, store):
        add_completed(store, "rails")
        assert analytics.suggestions("  ") == []

    def test_popular_searches(self, analytics, store):
        add_completed(store, "rails", times=3)
        add_completed(store, "django")
        assert analytics.popular_searches(10) == ["rails", "django"]


class TestTopQueries:

    def test_counts_submitted_text_within_period(self, analytics, store, clock):
        store.insert(QueryRecord(text="old query", user_key="u1"))
        clock.advance(days=10)
        store.insert(QueryRecord(text="rails", user_key="u1"))
        store.insert(QueryRecord(text="rails", user_key="u2"))
        add_completed(store, "django")

        assert analytics.top_queries(10, days=7) == [("rails", 2), ("django", 1)]
        assert ("old query", 1) in analytics.top_queries(10, days=30)


class TestRecentSearches:

    def test_newest_first_distinct(self, analytics, store, clock):
        for text in ("rails", "django", "rails", "flask"):
            add_completed(store, text)
            clock.advance(minutes=1)

        assert analytics.recent_searches("u1", 5) == ["flask", "rails", "django"]

    def test_other_users_excluded(self, analytics, store):
        add_completed(store, "rails", user_key="u2")
        assert analytics.recent_searches("u1", 5) == []


class BrokenStore(InMemoryQueryStore):

    def group_count(self, query, field):
        raise StoreError("group_count", "no such table: query_records")

    def find_all(self, query):
        raise StoreError("find_all", "no such table: query_records")


def test_store_failure_returns_empty(clock):
    analytics = SearchAnalytics(BrokenStore(clock=clock), clock=clock)
    assert analytics.global_stats(10) == []
    assert analytics.stats_for("u1") == []
    assert analytics.suggestions("rails") == []
    assert analytics.popular_searches(10) == []
    assert analytics.top_queries(10, 7) == []
    assert analytics.recent_searches("u1") == []
