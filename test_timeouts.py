import asyncio

import pytest

from services.exceptions import OperationTimeout
from services.timeouts import with_timeout


async def test_returns_result_within_deadline():
    async def quick():
        return 42

    assert await with_timeout(quick(), 1.0) == 42


async def test_raises_operation_timeout_with_message():
    with pytest.raises(OperationTimeout, match="index took too long"):
        await with_timeout(asyncio.sleep(10), 0.01, "index took too long")


async def test_timeout_is_builtin_timeout_error():
    with pytest.raises(TimeoutError):
        await with_timeout(asyncio.sleep(10), 0.01)


async def test_losing_coroutine_is_cancelled():
    cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    with pytest.raises(OperationTimeout):
        await with_timeout(slow(), 0.01)
    assert cancelled.is_set()


async def test_inner_timeout_message_preserved():
    async def inner():
        return await with_timeout(asyncio.sleep(10), 0.01, "inner budget")

    with pytest.raises(OperationTimeout, match="inner budget"):
        await with_timeout(inner(), 1.0, "outer budget")


async def test_operation_errors_propagate():
    async def broken():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await with_timeout(broken(), 1.0)
