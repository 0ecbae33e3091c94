"""Drive a ManualScheduler alongside the asyncio loop.

Reconciler work is split between scheduler timers (store flushes, retry
sleeps, the reattach delay) and coroutines on the running loop. settle()
alternates the two until both are quiet.
"""

import asyncio

from vinet.core.scheduler import ManualScheduler


async def settle(scheduler: ManualScheduler, rounds: int = 5) -> None:
    """Run due timers and yield to the loop, rounds times."""
    for _ in range(rounds):
        scheduler.run_pending()
        await asyncio.sleep(0)
    scheduler.run_pending()


async def advance(scheduler: ManualScheduler, ms: float) -> None:
    """Move the virtual clock forward, then settle."""
    scheduler.advance(ms)
    await settle(scheduler)
