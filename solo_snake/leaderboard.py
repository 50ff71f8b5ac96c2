"""Leaderboard storage, best-score upsert and the live top-N view."""

import abc
import asyncio
import logging
import time
import uuid
from enum import Enum
from typing import Any, Callable, Optional

from .constants import LEADERBOARD_LIMIT
from .models import LeaderboardEntry

logger = logging.getLogger(__name__)


class SubmitResult(Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


class LeaderboardStore(abc.ABC):
    """Ranked key-value store: one entry per identity."""

    @abc.abstractmethod
    async def top(self, limit: int) -> list[LeaderboardEntry]:
        """Entries ordered by score, highest first."""

    @abc.abstractmethod
    async def find_by_identity(self, identity: str) -> Optional[LeaderboardEntry]:
        ...

    @abc.abstractmethod
    async def insert(self, entry: LeaderboardEntry) -> LeaderboardEntry:
        ...

    @abc.abstractmethod
    async def update(self, entry: LeaderboardEntry) -> LeaderboardEntry:
        ...


class MemoryLeaderboardStore(LeaderboardStore):
    def __init__(self):
        self.entries: dict[str, LeaderboardEntry] = {}

    async def top(self, limit: int) -> list[LeaderboardEntry]:
        ranked = sorted(self.entries.values(), key=lambda e: e.score, reverse=True)
        return ranked[:limit]

    async def find_by_identity(self, identity: str) -> Optional[LeaderboardEntry]:
        for entry in self.entries.values():
            if entry.identity == identity:
                return entry
        return None

    async def insert(self, entry: LeaderboardEntry) -> LeaderboardEntry:
        entry.entry_id = entry.entry_id or uuid.uuid4().hex
        self.entries[entry.entry_id] = entry
        return entry

    async def update(self, entry: LeaderboardEntry) -> LeaderboardEntry:
        if entry.entry_id not in self.entries:
            raise KeyError(f"No leaderboard entry with id {entry.entry_id}")
        self.entries[entry.entry_id] = entry
        return entry


class SupabaseLeaderboardStore(LeaderboardStore):
    """
    Leaderboard rows in a Supabase table.

    Expected columns: id, identity, display_name, score, timestamp.
    The client is synchronous, so every call runs in a worker thread.
    """

    def __init__(self, client: Any, table: str = "leaderboard"):
        self.client = client
        self.table = table

    @staticmethod
    def _to_entry(row: dict) -> LeaderboardEntry:
        return LeaderboardEntry(
            identity=row["identity"],
            display_name=row.get("display_name") or "",
            score=row.get("score") or 0,
            timestamp=row.get("timestamp") or 0,
            entry_id=str(row["id"]) if row.get("id") is not None else None,
        )

    async def top(self, limit: int) -> list[LeaderboardEntry]:
        def query():
            return (
                self.client.table(self.table)
                .select("*")
                .order("score", desc=True)
                .limit(limit)
                .execute()
            )
        response = await asyncio.to_thread(query)
        return [self._to_entry(row) for row in response.data]

    async def find_by_identity(self, identity: str) -> Optional[LeaderboardEntry]:
        def query():
            return (
                self.client.table(self.table)
                .select("*")
                .eq("identity", identity)
                .limit(1)
                .execute()
            )
        response = await asyncio.to_thread(query)
        if not response.data:
            return None
        return self._to_entry(response.data[0])

    async def insert(self, entry: LeaderboardEntry) -> LeaderboardEntry:
        row = {
            "identity": entry.identity,
            "display_name": entry.display_name,
            "score": entry.score,
            "timestamp": entry.timestamp,
        }
        response = await asyncio.to_thread(
            lambda: self.client.table(self.table).insert(row).execute()
        )
        if response.data:
            return self._to_entry(response.data[0])
        return entry

    async def update(self, entry: LeaderboardEntry) -> LeaderboardEntry:
        changes = {
            "display_name": entry.display_name,
            "score": entry.score,
            "timestamp": entry.timestamp,
        }
        await asyncio.to_thread(
            lambda: self.client.table(self.table)
            .update(changes)
            .eq("id", entry.entry_id)
            .execute()
        )
        return entry


def now_ms() -> int:
    return int(time.time() * 1000)


async def submit_score(
    store: Optional[LeaderboardStore],
    identity: Optional[str],
    display_name: Optional[str],
    final_score: int,
) -> SubmitResult:
    """Record final_score as the identity's best, if it beats the stored one.

    Never raises: store failures are logged and the score is dropped.
    """
    if store is None or not identity or not display_name:
        logger.error("Leaderboard not ready or identity/name missing; score not submitted")
        return SubmitResult.SKIPPED

    try:
        existing = await store.find_by_identity(identity)
        if existing is None:
            await store.insert(LeaderboardEntry(
                identity=identity,
                display_name=display_name,
                score=final_score,
                timestamp=now_ms(),
            ))
            logger.info(f"New score {final_score} added for {identity}")
            return SubmitResult.CREATED

        if final_score > existing.score:
            existing.display_name = display_name
            existing.score = final_score
            existing.timestamp = now_ms()
            await store.update(existing)
            logger.info(f"Best score for {identity} raised to {final_score}")
            return SubmitResult.UPDATED

        logger.info(
            f"Score {final_score} does not beat best {existing.score} for {identity}; not updated"
        )
        return SubmitResult.UNCHANGED

    except Exception as e:
        logger.error(f"Error submitting score for {identity}: {e}")
        return SubmitResult.FAILED


Listener = Callable[[list[LeaderboardEntry]], None]


class LeaderboardFeed:
    """Keeps the latest top-N list and pushes it to subscribers.

    `entries` stays None until the first successful query, which the UI shows
    as "loading".
    """

    def __init__(self, store: LeaderboardStore, limit: int = LEADERBOARD_LIMIT,
                 poll_seconds: float = 5.0):
        self.store = store
        self.limit = limit
        self.poll_seconds = poll_seconds
        self.entries: Optional[list[LeaderboardEntry]] = None
        self._listeners: list[Listener] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def loading(self) -> bool:
        return self.entries is None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh(self) -> bool:
        try:
            entries = await self.store.top(self.limit)
        except Exception as e:
            logger.error(f"Error fetching leaderboard: {e}")
            return False
        self.entries = entries
        for listener in list(self._listeners):
            listener(entries)
        return True

    async def _poll(self):
        while True:
            await self.refresh()
            await asyncio.sleep(self.poll_seconds)

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._poll())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


def entries_to_list(entries: Optional[list[LeaderboardEntry]]) -> list[dict]:
    return [
        {"rank": i + 1, "display_name": e.display_name, "score": e.score, "entry_id": e.entry_id}
        for i, e in enumerate(entries or [])
    ]
