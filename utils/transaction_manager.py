import logging
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from functools import wraps
from datetime import datetime

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_commit, session_rollback

logger = logging.getLogger(__name__)


class TransactionManager:
    """
    Utility class for managing database transactions with
    rollback mechanisms and retry logic for race condition prevention.
    """

    # Transaction timeout in seconds
    TRANSACTION_TIMEOUT = config.TRANSACTION_TIMEOUT

    # Retry configuration
    MAX_RETRIES = config.TRANSACTION_MAX_RETRIES
    RETRY_DELAY_BASE = config.TRANSACTION_RETRY_DELAY_BASE  # Base delay in seconds

    @staticmethod
    @asynccontextmanager
    async def atomic(session: AsyncSession | Session,
                     timeout: Optional[int] = None) -> AsyncGenerator[AsyncSession | Session, None]:
        """
        Make everything done with `session` inside the block one unit of work.

        Commits when the block exits normally. On any exception, including
        task cancellation, the transaction is rolled back and the exception
        propagates unchanged.

        Usage:
            async with TransactionManager.atomic(session):
                await ProductRepository.decrement_stock(...)
                await OrderRepository.create(...)
        """
        timeout = timeout or TransactionManager.TRANSACTION_TIMEOUT
        transaction_start = datetime.now()
        try:
            yield session
            duration = (datetime.now() - transaction_start).total_seconds()
            if duration > timeout:
                logger.warning(f"Transaction exceeded timeout: {duration:.2f}s > {timeout}s")
            await session_commit(session)
            logger.debug(f"Transaction committed successfully in {duration:.2f}s")
        except BaseException as e:
            try:
                await session_rollback(session)
                logger.info(f"Transaction rolled back due to error: {type(e).__name__}: {e}")
            except Exception as rollback_error:
                logger.critical(f"Failed to rollback transaction: {str(rollback_error)}")
            raise

    @staticmethod
    def with_retry(max_retries: Optional[int] = None, delay_base: Optional[float] = None):
        """
        Decorator for automatic retry of database operations with exponential backoff.

        Only lock contention is retried (OperationalError such as "database is
        locked"). Domain exceptions propagate on the first
        attempt. The wrapped function must open its own transaction so
        that every attempt starts from a clean state.

        Args:
            max_retries: Maximum number of retry attempts
            delay_base: Base delay for exponential backoff
        """
        max_retries = TransactionManager.MAX_RETRIES if max_retries is None else max_retries
        delay_base = TransactionManager.RETRY_DELAY_BASE if delay_base is None else delay_base

        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                last_exception = None

                for attempt in range(max_retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except OperationalError as e:
                        last_exception = e

                        if attempt == max_retries:
                            logger.error(f"Function {func.__name__} failed after {max_retries} retries: {str(e)}")
                            break

                        # Exponential backoff with jitter
                        delay = delay_base * (2 ** attempt) + (delay_base * 0.1 * attempt)
                        logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}, retrying in {delay:.2f}s: {str(e)}")
                        await asyncio.sleep(delay)

                raise TransactionRetryExhausted(
                    f"{func.__name__} failed after {max_retries + 1} attempts"
                ) from last_exception

            return wrapper
        return decorator


class TransactionRetryExhausted(Exception):
    """Exception raised when maximum retry attempts are exhausted"""
    pass
