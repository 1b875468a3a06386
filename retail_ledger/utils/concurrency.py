from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict

from retail_ledger.logger_config import logger


def fan_out(calls: Dict[str, Callable[[], Any]], max_workers: int = 6) -> Dict[str, Any]:
    """
    Run independent store reads in parallel and join on all of them.

    The first failing read (in submission order) is re-raised once every
    branch has finished, so no query is left running behind the caller.
    """
    if not calls:
        return {}

    workers = max(1, min(max_workers, len(calls)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ledger-read") as pool:
        futures = {name: pool.submit(fn) for name, fn in calls.items()}

    results: Dict[str, Any] = {}
    for name, future in futures.items():
        error = future.exception()
        if error is not None:
            logger.error(f"Parallel read '{name}' failed: {error}")
            raise error
        results[name] = future.result()
    return results
