"""
Score Clamps
Keeps every confidence number an integer on the 0-100 scale
"""

import math

SCORE_MIN = 0
SCORE_MAX = 100


def clamp_score(value: float) -> float:
    """Clamp a raw score into [SCORE_MIN, SCORE_MAX]"""
    return min(SCORE_MAX, max(SCORE_MIN, value))


def round_score(value: float) -> int:
    """
    Round to the nearest integer (halves round up) and clamp.

    round() would turn 72.5 into 72; scores shown to surveyors round half up.
    """
    # Snap float noise first so a weighted 93.5 is not read as 93.4999...
    return int(clamp_score(math.floor(round(value, 6) + 0.5)))
