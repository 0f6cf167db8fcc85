#!/usr/bin/env python
# scripts/search.py
"""
Query a running advocate API through the async search controller.

Usage:
  python -m scripts.search --specialty "eating disorders" --city austin
  python -m scripts.search --q anxiety --min-years 5 --pages 3 --limit 20

Base URL comes from CLIENT_BASE_URL unless --base-url is given.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import httpx

from src.client import AdvocateSearchController, SearchState
from src.config import CLIENT_BASE_URL, LOG_LEVEL, SEARCH_DEFAULT_LIMIT

log = logging.getLogger("scripts.search")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Search advocates via the HTTP API.")
    p.add_argument("--base-url", default=CLIENT_BASE_URL)
    p.add_argument("--q", default="")
    p.add_argument("--city", default="")
    p.add_argument("--degree", default="")
    p.add_argument("--specialty", default="")
    p.add_argument("--min-years", default="")
    p.add_argument("--max-years", default="")
    p.add_argument("--limit", type=int, default=SEARCH_DEFAULT_LIMIT)
    p.add_argument("--pages", type=int, default=1, help="Pages to fetch (load more).")
    p.add_argument("--timeout", type=float, default=10.0)
    return p.parse_args(argv)


def _format_row(row: dict) -> str:
    specialties = ", ".join(row.get("specialties") or [])
    return (
        f"{row['id']:>6}  {row['firstName']} {row['lastName']:<12} "
        f"{row['city']:<14} {row['degree']:<5} {row['yearsOfExperience']:>2}y  {specialties}"
    )


async def run(args: argparse.Namespace) -> int:
    async with httpx.AsyncClient(base_url=args.base_url, timeout=args.timeout) as http:
        async with AdvocateSearchController(http, limit=args.limit, debounce_ms=0) as ctl:
            ctl.update_filters(
                q=args.q,
                city=args.city,
                degree=args.degree,
                specialty=args.specialty,
                minYears=args.min_years,
                maxYears=args.max_years,
            )
            ctl.flush_filters()
            await ctl.wait_idle()
            if ctl.state is SearchState.IDLE:
                # No filter changed from its default, so nothing restarted the search.
                await ctl.search()

            for _ in range(max(0, args.pages - 1)):
                if not ctl.has_next_page or ctl.state is SearchState.ERROR:
                    break
                await ctl.load_more()

            if ctl.state is SearchState.ERROR:
                log.error("%s", ctl.error)
                if not ctl.advocates:
                    return 1

            for row in ctl.advocates:
                print(_format_row(row))
            more = " (more available)" if ctl.has_next_page else ""
            print(f"-- {len(ctl.advocates)} advocates{more}")
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
