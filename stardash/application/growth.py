"""
Star-growth estimation.

Two strategies produce a TrendRecord. The empirical one counts real
``starred_at`` events inside each look-back window; the statistical one
derives a plausible recent rate from total stars, repository age and push
activity when no event history is available. Both share one trend threshold
table and one momentum formula.
"""
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from stardash.application.aggregator import round_half_up
from stardash.domain.models import (
    MomentumLabel,
    RepositoryEntity,
    TrendLabel,
    TrendRecord,
    WindowGrowth,
)

WINDOWS: Tuple[int, ...] = (30, 90, 180, 365)
RECENT_WINDOW = 30

HOT_THRESHOLD = 100
RISING_THRESHOLD = 10
STEADY_THRESHOLD = 1
MOMENTUM_THRESHOLD = 20

# (days since last push strictly below, activity factor)
ACTIVITY_FACTORS: Sequence[Tuple[int, float]] = (
    (7, 2.5),
    (30, 1.8),
    (90, 1.2),
    (180, 0.6),
    (365, 0.3),
)
STALE_ACTIVITY_FACTOR = 0.1

# (age in days strictly above, decay factor)
AGE_DECAY: Sequence[Tuple[int, float]] = (
    (3 * 365, 0.4),
    (2 * 365, 0.6),
    (365, 0.8),
)
YOUNG_AGE_DECAY = 1.0

WINDOW_DAMPING: Dict[int, float] = {30: 1.0, 90: 0.95, 180: 0.9, 365: 0.85}


def monthly_rate(count: int, days: int) -> int:
    return round_half_up(count / days * 30)


def trend_label(count_30: int) -> TrendLabel:
    if count_30 > HOT_THRESHOLD:
        return TrendLabel.HOT
    if count_30 >= RISING_THRESHOLD:
        return TrendLabel.RISING
    if count_30 >= STEADY_THRESHOLD:
        return TrendLabel.STEADY
    return TrendLabel.QUIET


def momentum(rate_30: int, rate_90: int) -> Tuple[MomentumLabel, int]:
    """Classify the change between the 30-day and 90-day monthly rates."""
    diff = (rate_30 - rate_90) / max(rate_90, 1) * 100
    if diff > MOMENTUM_THRESHOLD:
        label = MomentumLabel.ACCELERATING
    elif diff < -MOMENTUM_THRESHOLD:
        label = MomentumLabel.SLOWING
    else:
        label = MomentumLabel.STABLE
    return label, round_half_up(diff)


def _build_record(windows: Dict[int, WindowGrowth], estimated: bool) -> TrendRecord:
    label = trend_label(windows[RECENT_WINDOW].count)
    if 90 in windows:
        momentum_label, percent = momentum(windows[30].monthly_rate, windows[90].monthly_rate)
    else:
        momentum_label, percent = None, None
    return TrendRecord(
        windows=windows,
        trend=label,
        momentum=momentum_label,
        momentum_percent=percent,
        estimated=estimated,
    )


def _count_windows(starred_at: Iterable[datetime], now: datetime, windows: Sequence[int]) -> Dict[int, WindowGrowth]:
    events: List[datetime] = list(starred_at)
    result: Dict[int, WindowGrowth] = {}
    for days in windows:
        cutoff = now - timedelta(days=days)
        count = sum(1 for event in events if event > cutoff)
        result[days] = WindowGrowth(days=days, count=count, monthly_rate=monthly_rate(count, days))
    return result


def covered_windows(now: datetime, covered_since: Optional[datetime]) -> Tuple[int, ...]:
    """
    Windows whose whole span lies inside the fetched history.

    The 30-day window is always kept; when even it is not covered its count
    is a lower bound, which still lands in the right trend band.
    """
    if covered_since is None:
        return WINDOWS
    return tuple(
        days for days in WINDOWS
        if days == RECENT_WINDOW or now - timedelta(days=days) >= covered_since
    )


def empirical_trend(
    starred_at: Iterable[datetime],
    now: datetime,
    covered_since: Optional[datetime] = None,
) -> TrendRecord:
    """
    Trend from real star events, over the 30/90/180/365-day windows.

    Args:
        starred_at: Timestamps at which the repository was starred, any order.
        now: Reference time the windows are counted back from.
        covered_since: Oldest time the events are known to be complete from,
            or None for a full history. Windows reaching further back are
            left out, and without a 90-day window there is no momentum.
    """
    windows = covered_windows(now, covered_since)
    return _build_record(_count_windows(starred_at, now, windows), estimated=False)


def recent_trend(starred_at: Iterable[datetime], now: datetime) -> TrendRecord:
    """Trend from events of the last 30 days only. No momentum is computed."""
    return _build_record(_count_windows(starred_at, now, (RECENT_WINDOW,)), estimated=False)


def activity_factor(days_since_push: float) -> float:
    for limit, factor in ACTIVITY_FACTORS:
        if days_since_push < limit:
            return factor
    return STALE_ACTIVITY_FACTOR


def age_decay_factor(age_days: float) -> float:
    for limit, factor in AGE_DECAY:
        if age_days > limit:
            return factor
    return YOUNG_AGE_DECAY


def _days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 86400


def estimate_trend(
    stars: int,
    created_at: datetime,
    pushed_at: Optional[datetime],
    now: datetime,
) -> TrendRecord:
    """
    Statistical estimate of recent star growth from repository metadata.

    The estimate is not a reconstruction of history: it scales the lifetime
    average by how recently the repository was pushed to and how old it is.
    Longer windows never report fewer stars than shorter ones.
    """
    age_days = max(_days_between(created_at, now), 1.0)
    days_since_push = max(_days_between(pushed_at or created_at, now), 0.0)

    lifetime_avg_per_day = stars / age_days
    current_rate = lifetime_avg_per_day * activity_factor(days_since_push) * age_decay_factor(age_days)

    windows: Dict[int, WindowGrowth] = {}
    previous = 0
    for days in WINDOWS:
        count = max(round_half_up(current_rate * days * WINDOW_DAMPING[days]), previous)
        windows[days] = WindowGrowth(days=days, count=count, monthly_rate=monthly_rate(count, days))
        previous = count

    return _build_record(windows, estimated=True)


def estimate_for(repo: RepositoryEntity, now: datetime) -> TrendRecord:
    return estimate_trend(repo.stars, repo.created_at, repo.pushed_at or repo.updated_at, now)
