"""Single-player snake served over FastAPI with a shared top-10 leaderboard."""
