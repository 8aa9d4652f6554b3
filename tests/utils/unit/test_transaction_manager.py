"""
Tests for TransactionManager.atomic and TransactionManager.with_retry.
"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import InsufficientStockException
from utils.transaction_manager import TransactionManager, TransactionRetryExhausted


def _locked() -> OperationalError:
    return OperationalError("UPDATE products", {}, Exception("database is locked"))


class TestAtomic:

    @pytest.mark.asyncio
    async def test_commit_on_success(self):
        session = AsyncMock(spec=AsyncSession)

        async with TransactionManager.atomic(session):
            pass

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rollback_and_reraise(self):
        session = AsyncMock(spec=AsyncSession)

        with pytest.raises(InsufficientStockException):
            async with TransactionManager.atomic(session):
                raise InsufficientStockException(1, 2, 0)

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rollback_on_cancellation(self):
        session = AsyncMock(spec=AsyncSession)

        with pytest.raises(asyncio.CancelledError):
            async with TransactionManager.atomic(session):
                raise asyncio.CancelledError()

        session.rollback.assert_awaited_once()


class TestWithRetry:

    @pytest.mark.asyncio
    async def test_retries_lock_errors_then_succeeds(self):
        calls = AsyncMock(side_effect=[_locked(), _locked(), "done"])

        @TransactionManager.with_retry(max_retries=3, delay_base=0.01)
        async def operation():
            return await calls()

        with patch("utils.transaction_manager.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await operation() == "done"

        assert calls.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        calls = AsyncMock(side_effect=_locked())

        @TransactionManager.with_retry(max_retries=2, delay_base=0.01)
        async def operation():
            return await calls()

        with patch("utils.transaction_manager.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(TransactionRetryExhausted) as exc_info:
                await operation()

        assert calls.await_count == 3
        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_domain_errors_are_not_retried(self):
        calls = AsyncMock(side_effect=InsufficientStockException(1, 5, 0))

        @TransactionManager.with_retry(max_retries=3, delay_base=0.01)
        async def operation():
            return await calls()

        with pytest.raises(InsufficientStockException):
            await operation()

        assert calls.await_count == 1
