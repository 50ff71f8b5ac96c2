"""WebSocket connection management and message serialization."""

import asyncio
import json
from typing import Optional

from fastapi import WebSocket

from .leaderboard import LeaderboardFeed, entries_to_list


class ConnectionManager:
    def __init__(self):
        self.connections: set[WebSocket] = set()
        self._outbox: Optional[asyncio.Queue] = None
        self._sender: Optional[asyncio.Task] = None

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.connections.add(ws)

    def disconnect(self, ws: WebSocket):
        self.connections.discard(ws)

    async def broadcast(self, message: str):
        disconnected = []
        for ws in list(self.connections):
            try:
                await ws.send_text(message)
            except Exception:
                disconnected.append(ws)
        for ws in disconnected:
            self.connections.discard(ws)

    async def send_personal(self, ws: WebSocket, message: str):
        await ws.send_text(message)

    def start(self):
        """Run the single sender that broadcasts published messages in order."""
        if self._sender is None:
            self._outbox = asyncio.Queue()
            self._sender = asyncio.create_task(self._send_loop())

    async def stop(self):
        if self._sender is None:
            return
        self._sender.cancel()
        try:
            await self._sender
        except asyncio.CancelledError:
            pass
        self._sender = None
        self._outbox = None

    def publish(self, message: str):
        """Queue a message for every client; dropped if the sender isn't running."""
        if self._outbox is not None:
            self._outbox.put_nowait(message)

    async def _send_loop(self):
        while True:
            message = await self._outbox.get()
            await self.broadcast(message)


def build_leaderboard_state(feed: Optional[LeaderboardFeed]) -> dict:
    if feed is None:
        return {"available": False, "loading": False, "entries": []}
    return {
        "available": True,
        "loading": feed.loading,
        "entries": entries_to_list(feed.entries),
    }


def build_leaderboard_msg(feed: Optional[LeaderboardFeed]) -> str:
    return json.dumps({"type": "leaderboard", **build_leaderboard_state(feed)})
