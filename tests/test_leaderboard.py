"""
Tests for the leaderboard stores, best-score upsert and the top-N feed.
"""

import asyncio
from unittest.mock import MagicMock

from solo_snake.leaderboard import (
    LeaderboardFeed,
    MemoryLeaderboardStore,
    SubmitResult,
    SupabaseLeaderboardStore,
    entries_to_list,
    submit_score,
)
from solo_snake.models import LeaderboardEntry


class BrokenStore(MemoryLeaderboardStore):
    async def top(self, limit):
        raise ConnectionError("offline")

    async def find_by_identity(self, identity):
        raise ConnectionError("offline")


def entry(identity, score, name=None):
    return LeaderboardEntry(identity=identity, display_name=name or identity,
                            score=score, timestamp=0)


class TestSubmitScore:
    def test_upsert_sequence(self):
        store = MemoryLeaderboardStore()

        async def scenario():
            results = [
                await submit_score(store, "id-1", "Ada", 5),
                await submit_score(store, "id-1", "Ada", 3),
                await submit_score(store, "id-1", "Ada", 9),
            ]
            return results, await store.find_by_identity("id-1")

        results, stored = asyncio.run(scenario())
        assert results == [SubmitResult.CREATED, SubmitResult.UNCHANGED, SubmitResult.UPDATED]
        assert len(store.entries) == 1
        assert stored.score == 9

    def test_equal_score_is_not_an_update(self):
        store = MemoryLeaderboardStore()

        async def scenario():
            await submit_score(store, "id-1", "Ada", 5)
            return await submit_score(store, "id-1", "Ada", 5)

        assert asyncio.run(scenario()) is SubmitResult.UNCHANGED

    def test_update_refreshes_name(self):
        store = MemoryLeaderboardStore()

        async def scenario():
            await submit_score(store, "id-1", "Ada", 5)
            await submit_score(store, "id-1", "Countess", 6)
            return await store.find_by_identity("id-1")

        stored = asyncio.run(scenario())
        assert stored.display_name == "Countess"
        assert stored.timestamp > 0

    def test_missing_identity_or_store_skipped(self):
        store = MemoryLeaderboardStore()
        assert asyncio.run(submit_score(None, "id-1", "Ada", 5)) is SubmitResult.SKIPPED
        assert asyncio.run(submit_score(store, None, "Ada", 5)) is SubmitResult.SKIPPED
        assert asyncio.run(submit_score(store, "id-1", "", 5)) is SubmitResult.SKIPPED
        assert store.entries == {}

    def test_store_failure_is_logged_not_raised(self, caplog):
        result = asyncio.run(submit_score(BrokenStore(), "id-1", "Ada", 5))
        assert result is SubmitResult.FAILED
        assert "Error submitting score" in caplog.text


class TestMemoryStore:
    def test_top_is_sorted_and_limited(self):
        store = MemoryLeaderboardStore()

        async def scenario():
            for i, score in enumerate([3, 12, 7, 1, 9]):
                await store.insert(entry(f"id-{i}", score))
            return await store.top(3)

        top = asyncio.run(scenario())
        assert [e.score for e in top] == [12, 9, 7]


class TestSupabaseStore:
    def test_find_by_identity_queries_one_row(self):
        client = MagicMock()
        chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value.data = [
            {"id": 4, "identity": "id-1", "display_name": "Ada", "score": 7, "timestamp": 10},
        ]
        store = SupabaseLeaderboardStore(client, "scores")

        found = asyncio.run(store.find_by_identity("id-1"))

        client.table.assert_called_with("scores")
        client.table.return_value.select.return_value.eq.assert_called_with("identity", "id-1")
        client.table.return_value.select.return_value.eq.return_value.limit.assert_called_with(1)
        assert found == LeaderboardEntry("id-1", "Ada", 7, 10, "4")

    def test_find_by_identity_none(self):
        client = MagicMock()
        chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value.data = []
        assert asyncio.run(SupabaseLeaderboardStore(client).find_by_identity("x")) is None

    def test_top_orders_descending(self):
        client = MagicMock()
        select = client.table.return_value.select.return_value
        select.order.return_value.limit.return_value.execute.return_value.data = [
            {"id": 1, "identity": "a", "display_name": "A", "score": 9, "timestamp": 1},
        ]
        top = asyncio.run(SupabaseLeaderboardStore(client).top(10))

        select.order.assert_called_with("score", desc=True)
        select.order.return_value.limit.assert_called_with(10)
        assert [e.score for e in top] == [9]

    def test_update_targets_row_id(self):
        client = MagicMock()
        store = SupabaseLeaderboardStore(client)
        asyncio.run(store.update(LeaderboardEntry("a", "A", 9, 5, "17")))

        update = client.table.return_value.update
        update.assert_called_with({"display_name": "A", "score": 9, "timestamp": 5})
        update.return_value.eq.assert_called_with("id", "17")

    def test_insert_returns_stored_row(self):
        client = MagicMock()
        insert = client.table.return_value.insert
        insert.return_value.execute.return_value.data = [
            {"id": 5, "identity": "a", "display_name": "A", "score": 3, "timestamp": 8},
        ]
        stored = asyncio.run(
            SupabaseLeaderboardStore(client, "scores").insert(LeaderboardEntry("a", "A", 3, 8))
        )

        client.table.assert_called_with("scores")
        insert.assert_called_with({"identity": "a", "display_name": "A", "score": 3, "timestamp": 8})
        assert stored == LeaderboardEntry("a", "A", 3, 8, "5")

    def test_insert_without_returned_row(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.return_value.data = []
        new_entry = LeaderboardEntry("a", "A", 3, 8)

        stored = asyncio.run(SupabaseLeaderboardStore(client).insert(new_entry))

        assert stored is new_entry
        assert stored.entry_id is None


class TestLeaderboardFeed:
    def test_loading_until_first_refresh(self):
        store = MemoryLeaderboardStore()
        feed = LeaderboardFeed(store)
        assert feed.loading

        received = []
        feed.subscribe(received.append)
        assert asyncio.run(feed.refresh()) is True
        assert not feed.loading
        assert received == [[]]

    def test_refresh_pushes_top_entries(self):
        store = MemoryLeaderboardStore()

        async def scenario():
            for i in range(12):
                await store.insert(entry(f"id-{i}", i))
            feed = LeaderboardFeed(store, limit=10)
            await feed.refresh()
            return feed.entries

        entries = asyncio.run(scenario())
        assert len(entries) == 10
        assert entries[0].score == 11

    def test_failure_keeps_loading(self):
        feed = LeaderboardFeed(BrokenStore())
        received = []
        feed.subscribe(received.append)
        assert asyncio.run(feed.refresh()) is False
        assert feed.loading
        assert received == []

    def test_unsubscribe(self):
        feed = LeaderboardFeed(MemoryLeaderboardStore())
        received = []
        unsubscribe = feed.subscribe(received.append)
        unsubscribe()
        unsubscribe()
        asyncio.run(feed.refresh())
        assert received == []

    def test_polling_task_starts_and_stops(self):
        store = MemoryLeaderboardStore()

        async def scenario():
            feed = LeaderboardFeed(store, poll_seconds=0.01)
            feed.start()
            await asyncio.sleep(0.05)
            await feed.stop()
            return feed

        feed = asyncio.run(scenario())
        assert feed.entries == []
        assert feed._task is None


def test_entries_to_list_ranks():
    rows = entries_to_list([entry("a", 9, "A"), entry("b", 4, "B")])
    assert [(r["rank"], r["display_name"], r["score"]) for r in rows] == [(1, "A", 9), (2, "B", 4)]
    assert entries_to_list(None) == []
