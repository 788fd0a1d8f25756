# flake8: noqa E402
# Run via uv so project deps are loaded, e.g.:
# uv run scripts/rates_probe.py --target "https://api.octopus.energy/v1/products/.../standard-unit-rates/?page=2"
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Ensure the src directory is importable when the script is invoked via uv/python directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from services.fetch_errors import FetchError
from services.retrying_fetcher import build_default_fetcher


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch one page of Agile standard unit rates.")
    parser.add_argument(
        "--target",
        help="Pagination URL returned by a previous page (default: the configured tariff listing).",
    )
    parser.add_argument("--limit", type=int, default=5, help="Number of slots to print (default: 5).")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    fetcher = build_default_fetcher()
    try:
        page = fetcher.fetch(args.target)
    except FetchError as exc:
        print(f"{type(exc).__name__}: {exc} (status={exc.status_code})", file=sys.stderr)
        return 1

    payload: dict[str, Any] = {
        "count": page.count,
        "older": page.older_token,
        "newer": page.newer_token,
        "results": [rate.model_dump(mode="json") for rate in page.results[: args.limit]],
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
