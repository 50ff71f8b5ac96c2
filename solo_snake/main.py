"""FastAPI application: HTTP routes, WebSocket endpoint and service wiring."""

import asyncio
import json
import logging
import os

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse

from .config import Settings, configure_logging, load_settings
from .connection_manager import ConnectionManager, build_leaderboard_msg, build_leaderboard_state
from .constants import DIRECTIONS, KEY_DIRECTIONS
from .identity import SupabaseAnonymousAuth, resolve_identity
from .leaderboard import (
    LeaderboardFeed, LeaderboardStore, MemoryLeaderboardStore,
    SubmitResult, SupabaseLeaderboardStore, submit_score,
)
from .preferences import Preferences, recover_abandoned_run
from .session import GameSession, InvalidDisplayName
from .supabase_client import get_supabase_client

logger = logging.getLogger(__name__)

HTML_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "index.html")


def build_services(settings: Settings):
    """Leaderboard store and auth for the configured backend.

    Returns (None, None) when the remote service is missing or misconfigured; the game
    still runs, just without a leaderboard.
    """
    if settings.leaderboard_backend == "memory":
        logger.info("Using in-memory leaderboard")
        return MemoryLeaderboardStore(), None

    try:
        client = get_supabase_client(settings)
    except ValueError as e:
        logger.error(f"Leaderboard disabled: {e}")
        return None, None

    return (
        SupabaseLeaderboardStore(client, settings.leaderboard_table),
        SupabaseAnonymousAuth(client),
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[LeaderboardStore] = None,
    auth=None,
) -> FastAPI:
    manager = ConnectionManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or load_settings()
        configure_logging(cfg)

        preferences = Preferences(cfg.preferences_path)
        recover_abandoned_run(preferences)

        lb_store, lb_auth = store, auth
        if lb_store is None:
            lb_store, lb_auth = build_services(cfg)

        identity = await asyncio.to_thread(resolve_identity, preferences, lb_auth)

        feed = None
        if lb_store is not None:
            feed = LeaderboardFeed(lb_store, poll_seconds=cfg.leaderboard_poll_seconds)
            feed.subscribe(lambda entries: manager.publish(build_leaderboard_msg(feed)))

        async def submit(player: str, name: str, score: int):
            result = await submit_score(lb_store, player, name, score)
            if feed is not None and result in (SubmitResult.CREATED, SubmitResult.UPDATED):
                await feed.refresh()
            return result

        session = GameSession(preferences, identity=identity, submit=submit)
        session.add_listener(lambda event: manager.publish(json.dumps(event)))

        app.state.settings = cfg
        app.state.session = session
        app.state.feed = feed
        app.state.manager = manager

        manager.start()
        if feed is not None:
            feed.start()
        logger.info(f"Snake ready for player {identity}")
        yield

        await session.close()
        if feed is not None:
            await feed.stop()
        await manager.stop()

    app = FastAPI(lifespan=lifespan)

    @app.get("/")
    async def serve_index():
        return FileResponse(HTML_PATH, media_type="text/html")

    @app.get("/api/leaderboard")
    async def get_leaderboard():
        return build_leaderboard_state(app.state.feed)

    @app.get("/api/menu")
    async def get_menu():
        return app.state.session.menu_state()

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        session: GameSession = app.state.session
        await manager.connect(ws)
        try:
            await manager.send_personal(ws, json.dumps(session.menu_state()))
            await manager.send_personal(ws, build_leaderboard_msg(app.state.feed))
            while True:
                raw = await ws.receive_text()
                try:
                    msg = json.loads(raw)
                except ValueError:
                    continue
                if not isinstance(msg, dict):
                    continue

                kind = msg.get("type")
                if kind == "set_name":
                    session.set_display_name(str(msg.get("name") or ""))
                    await manager.send_personal(ws, json.dumps(session.menu_state()))
                elif kind == "start":
                    name = msg.get("name")
                    try:
                        session.start(None if name is None else str(name))
                    except InvalidDisplayName as e:
                        await manager.send_personal(ws, json.dumps({
                            "type": "error",
                            "message": e.message,
                        }))
                elif kind == "input":
                    d = msg.get("direction")
                    key = msg.get("key")
                    if not d and isinstance(key, str):
                        d = KEY_DIRECTIONS.get(key) or KEY_DIRECTIONS.get(key.lower())
                    if isinstance(d, str) and d in DIRECTIONS:
                        session.set_direction(d)
                elif kind == "end":
                    session.end()
        except WebSocketDisconnect:
            pass
        finally:
            manager.disconnect(ws)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    cfg = load_settings()
    print(f"Snake server starting on http://localhost:{cfg.port}")
    uvicorn.run(app, host=cfg.host, port=cfg.port)
