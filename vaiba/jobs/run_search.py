"""CLI job to run a proximity search and print the results as JSON."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from vaiba.core import proximity_search
from vaiba.core.config import ConfigurationError
from vaiba.etl.transform import to_response_item

logger = logging.getLogger(__name__)


def run_search_job(*, search_term: str, location: str, radius_km: float, output: Optional[str] = None) -> int:
    """Run one search and write the results; returns the number of places found."""
    # The web client sends kilometers * 1000; mirror it here.
    results = proximity_search.search(search_term, location, radius_km * 1000)
    items = [to_response_item(result) for result in results]
    text = json.dumps(items, ensure_ascii=False, indent=2)

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text + "\n")
        logger.info("Wrote %d places to %s", len(items), output)
    else:
        sys.stdout.write(text + "\n")
    return len(items)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search nearby places around a location")
    parser.add_argument("--term", dest="search_term", required=True, help="Business type or name to search")
    parser.add_argument("--location", dest="location", required=True, help="Place name to search around")
    parser.add_argument("--radius-km", dest="radius_km", type=float, default=50.0, help="Search radius in kilometers")
    parser.add_argument("--output", dest="output", help="Write JSON to this file instead of stdout")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        run_search_job(
            search_term=args.search_term,
            location=args.location,
            radius_km=args.radius_km,
            output=args.output,
        )
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except proximity_search.SearchError as exc:
        logger.error("Search failed: %s details=%s", exc, exc.details)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
