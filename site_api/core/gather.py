"""
Parallel join with per-operation result capture.

Used by the intake pipelines to fire the staff notification and the user
confirmation together: both are started before either is awaited, and one
failing never cancels or fails the other.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Settled:
    """Outcome of one operation in a settled join."""

    value: Any = None
    exception: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.exception is None


async def gather_settled(*operations: Awaitable[Any]) -> List[Settled]:
    """
    Run all operations concurrently and wait for every one of them.

    Args:
        *operations: Awaitables to run

    Returns:
        list: One Settled per operation, in argument order
    """
    outcomes = await asyncio.gather(*operations, return_exceptions=True)

    settled = []
    for outcome in outcomes:
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            logger.error(f"Operation in settled join raised: {outcome!r}")
            settled.append(Settled(exception=outcome))
        else:
            settled.append(Settled(value=outcome))
    return settled
