"""Pluggable duration and classification strategies.

Processing time and the safety verdict are placeholders for real
analysis; both are injectable so tests can make runs deterministic.
"""

import random
from typing import Optional

from vidshield.domain.enums import Classification
from vidshield.domain.exceptions import ErrorContext, InvalidValueError
from vidshield.domain.models.asset import Asset


class RandomDurationProvider:
    """Draws a total processing time uniformly from a millisecond range."""

    def __init__(
        self,
        min_ms: int = 5000,
        max_ms: int = 10000,
        rng: Optional[random.Random] = None,
    ):
        if min_ms < 0 or min_ms > max_ms:
            raise InvalidValueError(
                "Duration range must satisfy 0 <= min_ms <= max_ms",
                context=ErrorContext(
                    field_name="duration_ms", invalid_value=(min_ms, max_ms)
                ),
            )
        self.min_ms = min_ms
        self.max_ms = max_ms
        self._rng = rng or random.Random()

    def __call__(self) -> int:
        return self._rng.randint(self.min_ms, self.max_ms)


class FixedDurationProvider:
    """Always returns the same duration."""

    def __init__(self, duration_ms: int = 0):
        if duration_ms < 0:
            raise InvalidValueError(
                "Duration cannot be negative",
                context=ErrorContext(field_name="duration_ms", invalid_value=duration_ms),
            )
        self.duration_ms = duration_ms

    def __call__(self) -> int:
        return self.duration_ms


class RandomClassifier:
    """Marks an asset safe with ``safe_probability``, flagged otherwise."""

    def __init__(self, safe_probability: float = 0.7, rng: Optional[random.Random] = None):
        if not 0.0 <= safe_probability <= 1.0:
            raise InvalidValueError(
                "Probability must be between 0 and 1",
                context=ErrorContext(
                    field_name="safe_probability", invalid_value=safe_probability
                ),
            )
        self.safe_probability = safe_probability
        self._rng = rng or random.Random()

    def __call__(self, asset: Asset) -> Classification:
        if self._rng.random() < self.safe_probability:
            return Classification.SAFE
        return Classification.FLAGGED


class StaticClassifier:
    """Returns a fixed classification."""

    def __init__(self, classification: Classification = Classification.SAFE):
        self.classification = classification

    def __call__(self, asset: Asset) -> Classification:
        return self.classification
