"""
Lead tier classification.

Maps a lead-score percentage (0-100) onto one of five ordered tiers and
each tier onto the share of the product price credited as conversion value:

    Very Good (80%+):  100% of product price (Converted)
    Good (60-79%):     75% of product price  (Hot Lead)
    Fair (40-59%):     50% of product price  (Good Lead)
    Poor (20-39%):     25% of product price  (OK Lead)
    Very Poor (<20%):  $0                    (Not Good)

Thresholds and multipliers live together in a TierPolicy so the monetary
policy is defined in exactly one place.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Tier(str, Enum):
    VERY_POOR = "very_poor"
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    VERY_GOOD = "very_good"


@dataclass(frozen=True)
class TierBand:
    tier: Tier
    min_percent: float
    multiplier: float


@dataclass(frozen=True)
class TierPolicy:
    """
    Ordered tier bands, lowest first.

    The first band is the catch-all floor; every later band starts at its
    (inclusive) min_percent.
    """
    bands: Tuple[TierBand, ...]

    def __post_init__(self):
        if not self.bands:
            raise ValueError("TierPolicy needs at least one band")
        thresholds = [b.min_percent for b in self.bands]
        if thresholds != sorted(thresholds):
            raise ValueError("Tier bands must be ordered by min_percent")
        multipliers = [b.multiplier for b in self.bands]
        if multipliers != sorted(multipliers):
            raise ValueError("Tier multipliers must not decrease with score")

    def classify(self, percent: float) -> Tier:
        """Return the highest tier whose threshold the percentage reaches."""
        for band in reversed(self.bands[1:]):
            if percent >= band.min_percent:
                return band.tier
        return self.bands[0].tier

    def multiplier(self, tier: Tier) -> float:
        for band in self.bands:
            if band.tier == tier:
                return band.multiplier
        return 0.0


DEFAULT_TIER_POLICY = TierPolicy(bands=(
    TierBand(Tier.VERY_POOR, 0, 0.0),
    TierBand(Tier.POOR, 20, 0.25),
    TierBand(Tier.FAIR, 40, 0.50),
    TierBand(Tier.GOOD, 60, 0.75),
    TierBand(Tier.VERY_GOOD, 80, 1.0),
))


def classify_tier(percent: float) -> Tier:
    return DEFAULT_TIER_POLICY.classify(percent)


def tier_multiplier(tier: Tier) -> float:
    return DEFAULT_TIER_POLICY.multiplier(tier)
