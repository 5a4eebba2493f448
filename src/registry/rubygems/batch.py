"""Bounded-concurrency batch fetch of gem metadata."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer

from .models import GemInfo, GemInfoRequest, GemInfoResult

logger = logging.getLogger(__name__)

FetchFn = Callable[[str, Optional[str]], GemInfo]


def fetch_all(
    requests: Sequence[GemInfoRequest],
    fetch: FetchFn,
    max_workers: int = Constants.MAX_CONCURRENT_REQUESTS,
) -> List[GemInfoResult]:
    """Run ``fetch`` for every request with at most ``max_workers`` in flight.

    Every request runs to completion; an exception from one request is
    stored in that result's ``error`` and does not affect the others.
    Returns only after all requests have finished, with ``results[i]``
    answering ``requests[i]``.

    Args:
        requests: Gems to fetch, in caller order.
        fetch: Callable taking (name, version) and returning GemInfo.
        max_workers: Concurrency cap, clamped to MAX_CONCURRENT_REQUESTS.

    Returns:
        list: One GemInfoResult per request, in input order.
    """
    if not requests:
        return []

    workers = max(1, min(max_workers, Constants.MAX_CONCURRENT_REQUESTS, len(requests)))
    results: List[Optional[GemInfoResult]] = [None] * len(requests)

    with Timer() as t:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gemfetch") as executor:
            futures = {
                executor.submit(fetch, req.name, req.version): index
                for index, req in enumerate(requests)
            }
            for future in as_completed(futures):
                index = futures[future]
                req = requests[index]
                try:
                    results[index] = GemInfoResult(request=req, info=future.result())
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    logger.warning("Failed to fetch %s: %s", req.name, exc)
                    results[index] = GemInfoResult(request=req, error=exc)

    failed = sum(1 for r in results if r is not None and r.error is not None)
    if is_debug_enabled(logger):
        logger.debug(
            "Batch fetch finished",
            extra=extra_context(
                event="function_exit",
                component="batch",
                action="fetch_all",
                outcome="partial_failure" if failed else "success",
                count=len(requests),
                failed=failed,
                workers=workers,
                duration_ms=t.duration_ms(),
            )
        )
    return [r for r in results if r is not None]
