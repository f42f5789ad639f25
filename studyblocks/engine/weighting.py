"""Confidence weighting for studyblocks.

Maps a subject's self-rated confidence to a relative study priority.
Weak subjects get scheduled more often than strong ones.
"""

from studyblocks.models.constants import CONFIDENCE_WEIGHTS, FALLBACK_WEIGHT


def confidence_weight(confidence: int) -> float:
    """Return the scheduling weight for a confidence rating.

    The mapping is a fixed lookup table (5.0 at confidence 1 down to 0.3 at
    confidence 10). Out-of-range ratings fall back to 1.0.

    Args:
        confidence: Self-rated confidence (1-10)

    Returns:
        Relative weight (higher = study more often)
    """
    return CONFIDENCE_WEIGHTS.get(confidence, FALLBACK_WEIGHT)
