import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from exceptions.base import ConstraintViolationException
from exceptions.cart import CartItemNotFoundException
from exceptions.order import InvalidQuantityException
from exceptions.product import ProductNotFoundException
from exceptions.user import UserNotFoundException
from models.cartItem import CartItemDTO
from repositories.cart import CartRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class CartService:
    """
    Persisted shopping cart: one line per (user, product).

    Stock is not reserved here; OrderService.place_order checks it again.
    """

    @staticmethod
    async def add_item(user_id: int, product_id: int, quantity: int, session: Session | AsyncSession) -> CartItemDTO:
        """Add to the cart, increasing the existing line's quantity if the product is already there."""
        if quantity is None or quantity <= 0:
            raise InvalidQuantityException(product_id, quantity)
        async with TransactionManager.atomic(session):
            if not await UserRepository.exists(user_id, session):
                raise UserNotFoundException(user_id)
            if await ProductRepository.get_by_id(product_id, session) is None:
                raise ProductNotFoundException(product_id)

            if await CartRepository.increase_quantity(user_id, product_id, quantity, session):
                cart_item = await CartRepository.get_item(user_id, product_id, session)
            else:
                try:
                    cart_item = await CartRepository.create(
                        CartItemDTO(user_id=user_id, product_id=product_id, quantity=quantity), session
                    )
                except IntegrityError as e:
                    if "unique" not in str(e.orig).lower():
                        raise ConstraintViolationException("cart_items", str(e.orig)) from e
                    # A concurrent add created the line first
                    logger.info(f"🛒 Cart line ({user_id}, {product_id}) created concurrently, adding to it")
                    await CartRepository.increase_quantity(user_id, product_id, quantity, session)
                    cart_item = await CartRepository.get_item(user_id, product_id, session)
        logger.info(f"🛒 User {user_id} cart: product {product_id} quantity now {cart_item.quantity}")
        return cart_item

    @staticmethod
    async def set_quantity(user_id: int, product_id: int, quantity: int, session: Session | AsyncSession) -> CartItemDTO:
        if quantity is None or quantity <= 0:
            raise InvalidQuantityException(product_id, quantity)
        async with TransactionManager.atomic(session):
            if not await CartRepository.set_quantity(user_id, product_id, quantity, session):
                raise CartItemNotFoundException(user_id, product_id)
            cart_item = await CartRepository.get_item(user_id, product_id, session)
        return cart_item

    @staticmethod
    async def remove_item(user_id: int, product_id: int, session: Session | AsyncSession) -> None:
        async with TransactionManager.atomic(session):
            if not await CartRepository.remove_item(user_id, product_id, session):
                raise CartItemNotFoundException(user_id, product_id)

    @staticmethod
    async def get_cart(user_id: int, session: Session | AsyncSession) -> list[CartItemDTO]:
        async with TransactionManager.atomic(session):
            if not await UserRepository.exists(user_id, session):
                raise UserNotFoundException(user_id)
            return await CartRepository.get_items(user_id, session)

    @staticmethod
    async def clear_cart(user_id: int, session: Session | AsyncSession) -> int:
        async with TransactionManager.atomic(session):
            removed = await CartRepository.clear(user_id, session)
        logger.info(f"🛒 Cleared {removed} cart lines for user {user_id}")
        return removed
