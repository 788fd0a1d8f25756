"""Point-in-time queries over an ordered sequence of rate slots.

All functions expect ``rates`` sorted as a :class:`RateStore` snapshot is and a
timezone-aware ``now``. Slots are half-open: a slot ending at ``now`` is over.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from domain.rates import RateRecord

LOWEST_RATE_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class RatesSummary:
    current: RateRecord | None
    next: RateRecord | None
    lowest_next_24h: RateRecord | None
    error_message: str | None = None


def _require_aware(now: datetime) -> None:
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be timezone-aware")


def current_rate_index(rates: Sequence[RateRecord], now: datetime) -> int | None:
    _require_aware(now)
    for index, rate in enumerate(rates):
        if rate.covers(now):
            return index
    return None


def current_rate(rates: Sequence[RateRecord], now: datetime) -> RateRecord | None:
    index = current_rate_index(rates, now)
    return rates[index] if index is not None else None


def next_rate(rates: Sequence[RateRecord], now: datetime) -> RateRecord | None:
    index = current_rate_index(rates, now)
    if index is None or index + 1 >= len(rates):
        return None
    return rates[index + 1]


def lowest_rate_in_window(
    rates: Sequence[RateRecord],
    now: datetime,
    window: timedelta = LOWEST_RATE_WINDOW,
) -> RateRecord | None:
    """Cheapest slot overlapping ``[now, now + window)``; the earliest one wins a tie."""
    _require_aware(now)
    if window <= timedelta(0):
        raise ValueError("window must be positive")

    end = now + window
    lowest: RateRecord | None = None
    for rate in rates:
        if not (rate.valid_from < end and rate.valid_to > now):
            continue
        if lowest is None or (rate.value_inc_vat, rate.valid_from) < (lowest.value_inc_vat, lowest.valid_from):
            lowest = rate
    return lowest


def lowest_in_next_24h(rates: Sequence[RateRecord], now: datetime) -> RateRecord | None:
    return lowest_rate_in_window(rates, now, LOWEST_RATE_WINDOW)


def summarize(rates: Sequence[RateRecord], now: datetime) -> RatesSummary:
    return RatesSummary(
        current=current_rate(rates, now),
        next=next_rate(rates, now),
        lowest_next_24h=lowest_in_next_24h(rates, now),
    )


__all__ = [
    "LOWEST_RATE_WINDOW",
    "RatesSummary",
    "current_rate",
    "current_rate_index",
    "lowest_in_next_24h",
    "lowest_rate_in_window",
    "next_rate",
    "summarize",
]
