from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from typing import Sequence

from domain.rates import RateRecord
from services.pagination import Error, LoadOutcome, PaginationController, Success, build_default_controller
from services.rate_resolver import RatesSummary, summarize


def parse_timestamp(raw: str) -> datetime:
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def run(controller: PaginationController, *, older_pages: int, newer_pages: int, now: datetime) -> int:
    controller.initial_load()
    state = controller.state
    if isinstance(state, Error):
        print(f"Error: {state.message}")
        return 1

    for _ in range(older_pages):
        if controller.load_older() is not LoadOutcome.LOADED:
            break
    for _ in range(newer_pages):
        if controller.load_newer() is not LoadOutcome.LOADED:
            break

    state = controller.state
    rates = state.rates if isinstance(state, Success) else controller.rates()
    print(f"Loaded {len(rates)} rate slots")
    if rates:
        print(f"  From: {rates[0].valid_from.isoformat()}")
        print(f"  To:   {rates[-1].valid_to.isoformat()}")
    render_summary(summarize(rates, now), now)
    return 0


def render_summary(summary: RatesSummary, now: datetime) -> None:
    print(f"Rates at {now.isoformat()}:")
    print(f"  Current:        {_describe(summary.current)}")
    print(f"  Next:           {_describe(summary.next)}")
    print(f"  Lowest in 24h:  {_describe(summary.lowest_next_24h)}")


def _describe(rate: RateRecord | None) -> str:
    if rate is None:
        return "n/a"
    return f"{rate.value_inc_vat}p/kWh inc VAT ({rate.valid_from.isoformat()} - {rate.valid_to.isoformat()})"


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Load Agile unit rates and show current, next and cheapest slots.")
    parser.add_argument("--older", type=int, default=0, help="Number of older pages to load after the first one.")
    parser.add_argument("--newer", type=int, default=0, help="Number of newer pages to load after the first one.")
    parser.add_argument("--now", help="ISO8601 instant to resolve rates for (default: current UTC time).")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    now = parse_timestamp(args.now) if args.now else datetime.now(timezone.utc)
    return run(build_default_controller(), older_pages=args.older, newer_pages=args.newer, now=now)


if __name__ == "__main__":
    raise SystemExit(main())
