"""
Resolution ladder - which preview tiers to produce for a source.
"""

from enum import Enum
from typing import List, Optional

# Used when the coordinator has no recorded dimension; small enough that no
# tier is ever produced from a guess.
MIN_HEIGHT = 3
MIN_WIDTH = 4


class QualityTier(Enum):
    """Target preview quality, in lines, with its video bitrate."""
    P480 = (480, '3M')
    P720 = (720, '5M')
    P1080 = (1080, '8M')

    def __init__(self, lines: int, bitrate: str):
        self.lines = lines
        self.bitrate = bitrate

    @property
    def label(self) -> str:
        """Label sent to the shard as the ``quality`` form field."""
        return str(self.lines)

    @classmethod
    def from_label(cls, label) -> 'QualityTier':
        for tier in cls:
            if tier.label == str(label):
                return tier
        raise ValueError(f"unknown quality tier: {label}")

    @classmethod
    def ladder(cls) -> List['QualityTier']:
        """All tiers, lowest first."""
        return sorted(cls, key=lambda t: t.lines)


def ladder_height(width: Optional[int], height: Optional[int]) -> int:
    """
    Orientation-agnostic resolution of a source.

    The smaller of the two dimensions, so portrait and landscape sources of
    the same quality land on the same tiers.
    """
    return min(height or MIN_HEIGHT, width or MIN_WIDTH)


def tiers_for_height(height: Optional[int]) -> List[QualityTier]:
    """
    Tiers to produce for a source of the given resolution.

    Cumulative: a tier is included only together with every tier below it.
    """
    if not height or height <= 0:
        return []
    return [tier for tier in QualityTier.ladder() if height >= tier.lines]
