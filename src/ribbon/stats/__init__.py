"""Reading statistics: per-dimension totals, dashboard summary and streaks."""

from .aggregator import (
    StatsAggregator,
    Timeframe,
    parse_timeframe,
    timeframe_criteria,
)
from .streak import reading_streak, streak_from_dates

__all__ = [
    "StatsAggregator",
    "Timeframe",
    "parse_timeframe",
    "timeframe_criteria",
    "reading_streak",
    "streak_from_dates",
]
