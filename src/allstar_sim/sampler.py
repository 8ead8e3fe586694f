from __future__ import annotations

import random


def clamp_rating(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def sample_outcome(rating: float, rng: random.Random) -> bool:
    """One made/missed draw: succeeds with probability ``rating / 100``."""
    return rng.random() < clamp_rating(rating) / 100
