from __future__ import annotations

import logging
from datetime import datetime, timezone

from .fetch_errors import FetchError
from .pagination import PageFetcher
from .rate_resolver import RatesSummary, summarize
from .rate_store import RateStore

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data available."


def fetch_rates_summary(fetcher: PageFetcher, now: datetime | None = None) -> RatesSummary:
    """One-shot refresh for background consumers.

    Fetches the default listing on its own, independent of any interactive
    controller, and reports failures through ``error_message``.
    """
    ts = now or datetime.now(timezone.utc)
    try:
        page = fetcher.fetch(None)
    except FetchError as exc:
        logger.error("Background refresh failed: %s", exc)
        return RatesSummary(None, None, None, error_message=exc.message)

    if not page.results:
        logger.error("Empty response body or no rates results.")
        return RatesSummary(None, None, None, error_message=NO_DATA_MESSAGE)

    rates = RateStore(page.results).snapshot()
    return summarize(rates, ts)


__all__ = ["NO_DATA_MESSAGE", "fetch_rates_summary"]
