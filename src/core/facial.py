"""
Facial engagement metrics from face-mesh landmarks.

Input: one frame of normalized landmarks (468+ points, x/y in [0, 1]),
each point a {"x", "y", "z"} mapping or an (x, y[, z]) sequence.

Per-frame scores are heuristics on eye, mouth and brow geometry;
FacialAnalysisAggregator keeps running means across frames.
"""

import logging
import math
import time
from collections.abc import Callable, Sequence
from typing import Any

from src.domain.schemas import (
    CONFIDENCE_KEYS,
    EMOTION_KEYS,
    ENGAGEMENT_KEYS,
    FacialAnalysisSummary,
)

logger = logging.getLogger(__name__)

Landmarks = Sequence[Any]

# Face-mesh indices
LEFT_EYE_TOP = 159
LEFT_EYE_BOTTOM = 145
RIGHT_EYE_TOP = 386
RIGHT_EYE_BOTTOM = 374
MOUTH_LEFT = 61
MOUTH_RIGHT = 291
MOUTH_TOP = 13
MOUTH_BOTTOM = 14
LEFT_BROW = 70
RIGHT_BROW = 300
NOSE_TIP = 1
LEFT_EYE_OUTER = 33
RIGHT_EYE_OUTER = 263

REQUIRED_LANDMARKS = max(
    LEFT_EYE_TOP, LEFT_EYE_BOTTOM, RIGHT_EYE_TOP, RIGHT_EYE_BOTTOM,
    MOUTH_LEFT, MOUTH_RIGHT, MOUTH_TOP, MOUTH_BOTTOM,
    LEFT_BROW, RIGHT_BROW, NOSE_TIP, LEFT_EYE_OUTER, RIGHT_EYE_OUTER,
) + 1


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _xy(landmarks: Landmarks, index: int) -> tuple[float, float]:
    point = landmarks[index]
    if isinstance(point, dict):
        x, y = float(point["x"]), float(point["y"])
    else:
        x, y = float(point[0]), float(point[1])
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"landmark {index} is not finite")
    return x, y


def has_face(landmarks: Landmarks | None) -> bool:
    """True when the frame carries enough landmarks to score."""
    return bool(landmarks) and len(landmarks) >= REQUIRED_LANDMARKS


# =============================================================================
# Per-frame scores
# =============================================================================


def score_emotions(landmarks: Landmarks | None) -> dict[str, float] | None:
    """
    Emotion scores in [0, 1] (neutral has no upper clamp but cannot exceed 1).

    Returns:
        {neutral, happy, surprised, concerned, focused} or None without a face
    """
    if not has_face(landmarks):
        return None

    _, left_eye_top = _xy(landmarks, LEFT_EYE_TOP)
    _, left_eye_bottom = _xy(landmarks, LEFT_EYE_BOTTOM)
    _, right_eye_top = _xy(landmarks, RIGHT_EYE_TOP)
    _, right_eye_bottom = _xy(landmarks, RIGHT_EYE_BOTTOM)
    mouth_left_x, mouth_left_y = _xy(landmarks, MOUTH_LEFT)
    mouth_right_x, mouth_right_y = _xy(landmarks, MOUTH_RIGHT)
    _, mouth_top = _xy(landmarks, MOUTH_TOP)
    _, mouth_bottom = _xy(landmarks, MOUTH_BOTTOM)
    _, left_brow = _xy(landmarks, LEFT_BROW)
    _, right_brow = _xy(landmarks, RIGHT_BROW)

    eye_openness = (abs(left_eye_top - left_eye_bottom) + abs(right_eye_top - right_eye_bottom)) / 2

    mouth_width = abs(mouth_left_x - mouth_right_x)
    mouth_height = abs(mouth_top - mouth_bottom)
    mouth_ratio = mouth_height / mouth_width if mouth_width else 0.0
    mouth_curve = (mouth_left_y + mouth_right_y) / 2 - mouth_bottom

    brow_to_eye = (left_brow + right_brow) / 2 - (left_eye_top + right_eye_top) / 2

    return {
        "neutral": max(0.0, 1 - abs(mouth_curve) - abs(brow_to_eye) * 2),
        "happy": _clamp(mouth_curve * 3 + eye_openness * 0.5),
        "surprised": _clamp(eye_openness * 2 + max(0.0, -brow_to_eye * 4)),
        "concerned": _clamp(max(0.0, brow_to_eye * 3) + (0.3 if mouth_ratio > 0.3 else 0.0)),
        "focused": _clamp(eye_openness * 0.8 + (0.4 if mouth_ratio < 0.2 else 0.0)),
    }


def score_confidence(landmarks: Landmarks | None) -> dict[str, float] | None:
    """
    Head-pose based confidence scores.

    expression_consistency is a fixed 0.5 per frame.
    """
    if not has_face(landmarks):
        return None

    nose_x, _ = _xy(landmarks, NOSE_TIP)
    left_x, left_y = _xy(landmarks, LEFT_EYE_OUTER)
    right_x, right_y = _xy(landmarks, RIGHT_EYE_OUTER)

    head_tilt = abs(left_y - right_y)
    head_turn = abs(nose_x - (left_x + right_x) / 2)

    return {
        "eye_contact_ratio": max(0.0, 1 - head_turn * 5 - head_tilt * 3),
        "head_stability": max(0.0, 1 - head_tilt * 2 - head_turn * 2),
        "expression_consistency": 0.5,
    }


def score_engagement(emotions: dict[str, float] | None) -> dict[str, float] | None:
    """Engagement scores derived from emotion scores, each capped at 1."""
    if not emotions:
        return None
    return {
        "attention_score": min(1.0, emotions["focused"] + emotions["neutral"] * 0.5),
        "enthusiasm_level": min(1.0, emotions["happy"] + emotions["surprised"] * 0.7),
        "stress_indicators": min(
            1.0, emotions["concerned"] * 0.8 + (1 - emotions["neutral"]) * 0.3
        ),
    }


# =============================================================================
# Aggregation
# =============================================================================


class FacialAnalysisAggregator:
    """
    Running means of per-frame metrics.

    Usage:
        aggregator = FacialAnalysisAggregator()
        aggregator.start()
        for frame in frames:
            aggregator.add_landmarks(frame)
        summary = aggregator.stop()
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._started_at: float | None = None
        self._summary = FacialAnalysisSummary()

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    def start(self) -> None:
        """Reset and start timing."""
        self.reset()
        self._started_at = self._clock()

    def stop(self) -> FacialAnalysisSummary:
        """Stop timing. The summary keeps its last duration."""
        self._started_at = None
        return self.snapshot()

    def reset(self) -> None:
        self._summary = FacialAnalysisSummary()

    def snapshot(self) -> FacialAnalysisSummary:
        """Copy of the current summary."""
        return FacialAnalysisSummary.from_dict(self._summary.to_dict())

    def add_landmarks(self, landmarks: Landmarks | None) -> bool:
        """
        Score one frame and fold it into the means.

        Returns:
            False when the frame has no face or unreadable points (ignored)
        """
        try:
            emotions = score_emotions(landmarks)
            confidence = score_confidence(landmarks)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed landmark frame: {e!r}")
            return False
        engagement = score_engagement(emotions)
        if emotions is None or confidence is None or engagement is None:
            return False

        self.add_sample(emotions, confidence, engagement)
        return True

    def add_sample(
        self,
        emotions: dict[str, float],
        confidence: dict[str, float],
        engagement: dict[str, float],
    ) -> None:
        """Fold one already-scored sample into the means."""
        summary = self._summary
        n = summary.sample_count

        for target, sample, keys in (
            (summary.emotions, emotions, EMOTION_KEYS),
            (summary.confidence, confidence, CONFIDENCE_KEYS),
            (summary.engagement, engagement, ENGAGEMENT_KEYS),
        ):
            for key in keys:
                target[key] = (target[key] * n + float(sample.get(key, 0.0))) / (n + 1)

        summary.sample_count = n + 1
        if self._started_at is not None:
            summary.duration_analyzed = self._clock() - self._started_at


def summarize_frames(
    frames: list[Landmarks | None],
    duration_seconds: float | None = None,
) -> FacialAnalysisSummary:
    """
    Score a batch of frames.

    Args:
        frames: landmark frames (frames without a face are skipped)
        duration_seconds: capture duration reported by the client

    Returns:
        Aggregated summary

    Raises:
        ValueError: duration_seconds is not a finite number
    """
    if duration_seconds is not None and (
        isinstance(duration_seconds, bool)
        or not isinstance(duration_seconds, int | float)
        or not math.isfinite(duration_seconds)
    ):
        raise ValueError(f"duration_analyzed must be a number, got {duration_seconds!r}")

    aggregator = FacialAnalysisAggregator()
    for frame in frames:
        aggregator.add_landmarks(frame)
    summary = aggregator.snapshot()
    if duration_seconds is not None:
        summary.duration_analyzed = float(duration_seconds)
    return summary
