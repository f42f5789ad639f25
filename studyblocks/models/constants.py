"""Constants for studyblocks.

This module centralizes all magic numbers and default values used throughout the library.
"""

from typing import Dict


# Confidence scale (self-rated mastery)
MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 10

# Confidence -> scheduling weight. Lower confidence studies more often.
CONFIDENCE_WEIGHTS: Dict[int, float] = {
    1: 5.0,
    2: 4.0,
    3: 3.0,
    4: 2.5,
    5: 2.0,
    6: 1.5,
    7: 1.0,
    8: 0.7,
    9: 0.5,
    10: 0.3,
}
FALLBACK_WEIGHT = 1.0

# Schedule preference bounds (inclusive)
MIN_HORIZON_DAYS = 7
MAX_HORIZON_DAYS = 90
MIN_BLOCKS_PER_WEEKDAY = 1
MAX_BLOCKS_PER_WEEKDAY = 8
MIN_BLOCKS_PER_WEEKEND = 0
MAX_BLOCKS_PER_WEEKEND = 6
MIN_BLOCK_DURATION_MIN = 15
MAX_BLOCK_DURATION_MIN = 180

# Schedule defaults
DEFAULT_HORIZON_DAYS = 21
DEFAULT_BLOCKS_PER_WEEKDAY = 3
DEFAULT_BLOCKS_PER_WEEKEND = 2
DEFAULT_BLOCKS_PER_DAY = 3
DEFAULT_BLOCK_DURATION_MIN = 60
DEFAULT_USER_BLOCK_DURATION_MIN = 30
DEFAULT_SUBJECT_ICON = "📚"

# XP economy
XP_PER_HOUR = 100
SUBJECT_CURVE_BASE = 100
SUBJECT_CURVE_MULTIPLIER = 1.5
SUBJECT_CURVE_EXPONENT = 1.2
GLOBAL_CURVE_BASE = 200
GLOBAL_CURVE_MULTIPLIER = 1.8
GLOBAL_CURVE_EXPONENT = 1.3
