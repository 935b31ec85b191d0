"""
Fan-out/join helper for concurrent upstream fetches.
"""
import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, List, Optional, Sequence

logger = logging.getLogger("feed.concurrency")


def join_all(
    calls: Sequence[Callable[[], Any]],
    max_workers: Optional[int] = None,
) -> List[Any]:
    """
    Run calls concurrently and wait for all of them.

    Fails fast: the first error is raised as soon as it is observed, without
    waiting for the remaining calls. Results come back in the order of
    ``calls``, never in completion order.

    Each invocation uses its own pool, so a call may itself fan out without
    starving its parent's workers.
    """
    if not calls:
        return []

    workers = min(len(calls), max_workers or len(calls))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feed-fetch")
    try:
        futures = [executor.submit(call) for call in calls]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)

        for future in futures:
            if future in done and future.exception() is not None:
                error = future.exception()
                logger.debug(f"Fan-out of {len(calls)} calls aborted: {error}")
                raise error

        return [future.result() for future in futures]
    finally:
        # Do not block on stragglers after a failure
        executor.shutdown(wait=False, cancel_futures=True)
