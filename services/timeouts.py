"""
Deadline helper used at every external-call boundary
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from services.exceptions import OperationTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(
    operation: Awaitable[T],
    seconds: float,
    message: str = "Operation took too long"
) -> T:
    """
    Await an operation under a deadline.

    The operation is cancelled when the deadline passes. Work that was pushed
    to a thread with asyncio.to_thread keeps running in the background; only
    the wait is abandoned.

    Args:
        operation: Coroutine or future to await
        seconds: Deadline in seconds
        message: Message carried by the OperationTimeout

    Returns:
        The operation's result

    Raises:
        OperationTimeout: If the deadline passes first
    """
    try:
        return await asyncio.wait_for(operation, timeout=seconds)
    except OperationTimeout:
        # Inner deadline already fired; keep its message
        raise
    except asyncio.TimeoutError as e:
        logger.warning(f"⏱️ {message} (>{seconds}s)")
        raise OperationTimeout(message) from e
