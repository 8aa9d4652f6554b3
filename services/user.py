import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from exceptions.base import DeletionRestrictedException
from exceptions.user import UserNotFoundException
from repositories.user import UserRepository
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    async def delete_user(user_id: int, session: Session | AsyncSession) -> None:
        """
        Delete a user together with profile, addresses, cart, reviews and payment methods.

        Users with orders are kept: orders reference them for audit.
        """
        async with TransactionManager.atomic(session):
            if not await UserRepository.exists(user_id, session):
                raise UserNotFoundException(user_id)
            order_count = await UserRepository.count_orders(user_id, session)
            if order_count > 0:
                raise DeletionRestrictedException("user", user_id, "orders", order_count)
            await UserRepository.delete(user_id, session)
        logger.info(f"User {user_id} deleted")
