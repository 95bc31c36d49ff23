import asyncio
from typing import Any, Coroutine


async def gather_with_concurrency(n: int, *tasks: Coroutine[Any, Any, Any]) -> list[Any]:
    """
    Runs the coroutines concurrently while capping the number in flight at n.
    Results come back in argument order, whatever order they complete in.
    The first exception propagates; the remaining coroutines are cancelled.
    """
    if n <= 0:
        raise ValueError(f"Concurrency limit must be greater than 0, got {n}")

    semaphore = asyncio.Semaphore(n)

    async def sem_task(task: Coroutine[Any, Any, Any]) -> Any:
        async with semaphore:
            return await task

    futures = [asyncio.ensure_future(sem_task(task)) for task in tasks]
    try:
        return await asyncio.gather(*futures)
    except BaseException:
        for future in futures:
            if not future.done():
                future.cancel()
        # Let cancelled siblings unwind before the error leaves this frame
        await asyncio.gather(*futures, return_exceptions=True)
        raise
