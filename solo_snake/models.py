"""Data models."""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

Cell = tuple[int, int]


class RunStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"


class Page(Enum):
    MENU = "menu"
    GAME = "game"


class StepResult(NamedTuple):
    collided: bool = False
    ate: bool = False
    speed_changed: bool = False


@dataclass
class LeaderboardEntry:
    identity: str
    display_name: str
    score: int
    timestamp: int
    entry_id: Optional[str] = None
