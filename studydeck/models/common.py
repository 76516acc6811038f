from enum import Enum


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def round_percent(part: int, whole: int) -> int:
    """Percentage of part in whole, rounded half-up. 0 when whole is 0."""
    if whole <= 0:
        return 0
    # integer form of floor(part * 100 / whole + 0.5)
    return (part * 200 + whole) // (2 * whole)
