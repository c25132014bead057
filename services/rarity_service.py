"""
稀有度服務：把 0-99 的亂數對應到稀有度

分級（包含兩端）：
- 0-10:  Platinum
- 11-25: Gold
- 26-50: Silver
- 51-99: Bronze
"""
from models import Rarity

RARITY_ROLL_RANGE = 100

# (上限, 稀有度)，依序比對
RARITY_THRESHOLDS = [
    (10, Rarity.PLATINUM),
    (25, Rarity.GOLD),
    (50, Rarity.SILVER),
    (99, Rarity.BRONZE),
]


def rarity_for_roll(roll: int) -> Rarity:
    """
    根據亂數決定稀有度

    範例：
        rarity_for_roll(10) -> Rarity.PLATINUM
        rarity_for_roll(11) -> Rarity.GOLD
        rarity_for_roll(51) -> Rarity.BRONZE

    異常：
        ValueError: roll 不在 0-99
    """
    if not 0 <= roll < RARITY_ROLL_RANGE:
        raise ValueError(f"Rarity roll out of range: {roll}")

    for upper, rarity in RARITY_THRESHOLDS:
        if roll <= upper:
            return rarity
    return Rarity.BRONZE
