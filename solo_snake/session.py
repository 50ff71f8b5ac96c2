"""Run lifecycle: idle/running state machine driven by the tick timer."""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional

from .constants import EMPTY_NAME_MESSAGE
from .game import RunState
from .grid import Grid
from .models import Page, RunStatus
from .preferences import DISPLAY_NAME_KEY, RUN_IN_PROGRESS_KEY, Preferences
from .render import render_frame
from .scheduler import RepeatingTimer

logger = logging.getLogger(__name__)

EventListener = Callable[[dict], None]
ScoreSubmitter = Callable[[str, str, int], Awaitable[Any]]


class InvalidDisplayName(ValueError):
    def __init__(self, message: str = EMPTY_NAME_MESSAGE):
        super().__init__(message)
        self.message = message


class GameSession:
    def __init__(
        self,
        preferences: Preferences,
        identity: Optional[str] = None,
        submit: Optional[ScoreSubmitter] = None,
        grid: Optional[Grid] = None,
        rng: Optional[random.Random] = None,
    ):
        self.preferences = preferences
        self.identity = identity
        self.submit = submit
        self.grid = grid or Grid()
        self.rng = rng or random.Random()
        self.status = RunStatus.IDLE
        self.page = Page.MENU
        self.run: Optional[RunState] = None
        self.last_score: Optional[int] = None
        self.timer = RepeatingTimer(self.tick)
        self._listeners: list[EventListener] = []
        self._background: set[asyncio.Task] = set()

    @property
    def display_name(self) -> str:
        return self.preferences.get(DISPLAY_NAME_KEY, "")

    def set_display_name(self, name: str):
        name = (name or "").strip()
        if name:
            self.preferences.set(DISPLAY_NAME_KEY, name[:32])

    def add_listener(self, listener: EventListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: dict):
        for listener in list(self._listeners):
            listener(event)

    def menu_state(self) -> dict:
        return {
            "type": "menu",
            "page": self.page.value,
            "status": self.status.value,
            "display_name": self.display_name,
            "last_score": self.last_score,
            "identity": self.identity,
        }

    def start(self, display_name: Optional[str] = None):
        if display_name is not None:
            self.set_display_name(display_name)
        if not self.display_name.strip():
            raise InvalidDisplayName()

        self.timer.cancel()
        self.run = RunState(self.grid, self.rng)
        self.status = RunStatus.RUNNING
        self.page = Page.GAME
        self.preferences.set(RUN_IN_PROGRESS_KEY, True)
        self.timer.start(self.run.speed)

        logger.info(f"Run started for {self.display_name}")
        self._emit({"type": "game_start", "display_name": self.display_name})
        self._emit(render_frame(self.run))

    def set_direction(self, name: str) -> bool:
        if self.status is not RunStatus.RUNNING:
            return False
        return self.run.set_direction(name)

    def tick(self):
        if self.status is not RunStatus.RUNNING:
            return
        result = self.run.step()
        if result.collided:
            self.end()
            return
        self._emit(render_frame(self.run))
        if result.speed_changed:
            logger.debug(f"Speed up to {self.run.speed}ms at score {self.run.score}")
            self.timer.start(self.run.speed)

    def end(self):
        if self.status is not RunStatus.RUNNING:
            return
        self.status = RunStatus.IDLE
        self.page = Page.MENU
        self.timer.cancel()
        self.last_score = self.run.score
        self.preferences.remove(RUN_IN_PROGRESS_KEY)

        logger.info(f"Run over with score {self.last_score}")
        self._emit({"type": "game_over", "score": self.last_score})
        self._emit(self.menu_state())

        if self.submit is not None:
            self._spawn(self.submit(self.identity, self.display_name, self.last_score))

    def _spawn(self, coro: Awaitable):
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self):
        """Wait for pending score submissions."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def close(self):
        self.end()
        await self.drain()
