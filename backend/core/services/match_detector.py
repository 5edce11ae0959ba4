"""
Match Detector Service

Turns similarity scores into a "pose matched" signal.

The raw signal (similarity > threshold) flickers when the score hovers
around the threshold, which resets the hold timer. The detector
debounces it: the signal only flips after ``debounce_frames``
consecutive evaluations agree on the new value.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


def is_match(similarity: float, threshold: float) -> bool:
    """Raw, undebounced match decision."""
    return similarity > threshold


class MatchDetector:
    """
    Debounced match signal.

    Usage:
        detector = MatchDetector(threshold=0.8, debounce_frames=3)
        matched = detector.update(similarity)
    """

    def __init__(self, threshold: float = 0.8, debounce_frames: int = 3):
        if debounce_frames < 1:
            raise ValueError(f"debounce_frames must be >= 1, got {debounce_frames}")
        self.threshold = threshold
        self.debounce_frames = debounce_frames
        self._matched = False
        self._streak = 0
        self._last_similarity: Optional[float] = None

    @property
    def matched(self) -> bool:
        return self._matched

    @property
    def last_similarity(self) -> Optional[float]:
        return self._last_similarity

    def update(self, similarity: float) -> bool:
        """
        Feed one evaluation and return the (possibly unchanged) signal.

        Args:
            similarity: Score from the comparator, 0.0 to 1.0

        Returns:
            The debounced match signal after this evaluation
        """
        self._last_similarity = similarity
        raw = is_match(similarity, self.threshold)

        if raw == self._matched:
            self._streak = 0
            return self._matched

        self._streak += 1
        if self._streak >= self.debounce_frames:
            self._matched = raw
            self._streak = 0
            logger.debug(f"Match signal -> {raw} (similarity {similarity:.3f})")

        return self._matched

    def reset(self) -> None:
        """Clear the signal, e.g. when the reference pose changes."""
        self._matched = False
        self._streak = 0
        self._last_similarity = None
