from dataclasses import dataclass

SILVER = "Silver"
GOLD = "Gold"
PLATINUM = "Platinum"
MAX_TIER = "Max"

# New accounts are credited a 100 point signup balance, so Silver progress
# is measured from that baseline rather than from 0.
SILVER_BASELINE = 100
GOLD_THRESHOLD = 200
PLATINUM_THRESHOLD = 500


@dataclass(frozen=True)
class TierProgress:
    current_tier: str
    next_tier: str
    progress_percent: float
    points_to_next: int


def _progress(points: int, floor: int, ceiling: int) -> float:
    percent = (points - floor) / (ceiling - floor) * 100
    return max(0.0, min(100.0, percent))


def tier_of(points: int) -> TierProgress:
    """Maps a balance to its tier and the linear progress towards the next one."""
    if points < GOLD_THRESHOLD:
        return TierProgress(SILVER, GOLD, _progress(points, SILVER_BASELINE, GOLD_THRESHOLD), GOLD_THRESHOLD - points)
    if points < PLATINUM_THRESHOLD:
        return TierProgress(GOLD, PLATINUM, _progress(points, GOLD_THRESHOLD, PLATINUM_THRESHOLD), PLATINUM_THRESHOLD - points)
    return TierProgress(PLATINUM, MAX_TIER, 100.0, 0)
