"""Core game state and logic."""

import random
from typing import Optional

from .constants import (
    DIRECTIONS, INITIAL_SPEED, MIN_SPEED, SCALE,
    SPEED_DECREMENT_AMOUNT, SPEED_INCREMENT_INTERVAL,
)
from .grid import Grid
from .models import Cell, StepResult


def check_collision(head: Cell, snake: list[Cell], grid: Grid) -> bool:
    """True if head leaves the board or lands on a body cell past the old head."""
    if not grid.contains(head):
        return True
    return head in snake[1:]


def place_food(snake: list[Cell], grid: Grid, rng: random.Random) -> Cell:
    occupied = set(snake)
    food = grid.random_cell(rng)
    while food in occupied:
        food = grid.random_cell(rng)
    return food


def next_speed(speed: int, score: int) -> int:
    if score > 0 and score % SPEED_INCREMENT_INTERVAL == 0:
        return max(MIN_SPEED, speed - SPEED_DECREMENT_AMOUNT)
    return speed


class RunState:
    """Everything one run mutates: snake, heading, food, score and tick interval."""

    def __init__(self, grid: Optional[Grid] = None, rng: Optional[random.Random] = None):
        self.grid = grid or Grid()
        self.rng = rng or random.Random()
        self.snake: list[Cell] = []
        self.direction: Cell = (SCALE, 0)
        self.food: Cell = (0, 0)
        self.score = 0
        self.speed = INITIAL_SPEED
        self.reset()

    @property
    def head(self) -> Cell:
        return self.snake[0]

    def reset(self):
        self.snake = [(0, 0)]
        self.direction = (self.grid.scale, 0)
        self.score = 0
        self.speed = INITIAL_SPEED
        self.food = place_food(self.snake, self.grid, self.rng)

    def set_direction(self, name: str) -> bool:
        if name not in DIRECTIONS:
            return False
        ux, uy = DIRECTIONS[name]
        dx, dy = self.direction
        # Only turns onto the other axis are allowed.
        if (ux and dx != 0) or (uy and dy != 0):
            return False
        self.direction = (ux * self.grid.scale, uy * self.grid.scale)
        return True

    def step(self) -> StepResult:
        hx, hy = self.head
        dx, dy = self.direction
        head = (hx + dx, hy + dy)

        if check_collision(head, self.snake, self.grid):
            return StepResult(collided=True)

        self.snake.insert(0, head)
        if head != self.food:
            self.snake.pop()
            return StepResult()

        self.score += 1
        self.food = place_food(self.snake, self.grid, self.rng)
        speed = next_speed(self.speed, self.score)
        changed = speed != self.speed
        self.speed = speed
        return StepResult(ate=True, speed_changed=changed)
