"""Canvas draw operations for one tick."""

from .constants import FOOD_FILL, SNAKE_FILL, SNAKE_STROKE
from .game import RunState


def render_frame(run: RunState) -> dict:
    scale = run.grid.scale
    ops = [{"op": "clear", "x": 0, "y": 0, "w": run.grid.width, "h": run.grid.height}]
    for x, y in run.snake:
        ops.append({
            "op": "rect",
            "x": x, "y": y, "w": scale, "h": scale,
            "fill": SNAKE_FILL,
            "stroke": SNAKE_STROKE,
        })
    fx, fy = run.food
    ops.append({
        "op": "circle",
        "cx": fx + scale / 2,
        "cy": fy + scale / 2,
        "r": scale / 2,
        "fill": FOOD_FILL,
    })
    return {
        "type": "frame",
        "score": run.score,
        "speed": run.speed,
        "ops": ops,
    }
