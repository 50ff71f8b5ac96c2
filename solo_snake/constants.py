"""Game constants."""

CANVAS_SIZE = 400
SCALE = 20

INITIAL_SPEED = 150
SPEED_INCREMENT_INTERVAL = 5
SPEED_DECREMENT_AMOUNT = 10
MIN_SPEED = 50

LEADERBOARD_LIMIT = 10

# Unit deltas; multiplied by SCALE to get pixel steps.
DIRECTIONS = {
    "left": (-1, 0),
    "up": (0, -1),
    "right": (1, 0),
    "down": (0, 1),
}

KEY_DIRECTIONS = {
    "ArrowLeft": "left",
    "ArrowUp": "up",
    "ArrowRight": "right",
    "ArrowDown": "down",
    "a": "left",
    "w": "up",
    "d": "right",
    "s": "down",
}

SNAKE_FILL = "#4CAF50"
SNAKE_STROKE = "#388E3C"
FOOD_FILL = "#F44336"

EMPTY_NAME_MESSAGE = "Please enter a username to play!"
