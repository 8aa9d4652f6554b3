import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from exceptions.base import DeletionRestrictedException
from exceptions.order import InsufficientStockException
from exceptions.product import ProductNotFoundException
from models.product import ProductDTO
from repositories.product import ProductRepository
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class ProductService:

    @staticmethod
    async def adjust_stock(product_id: int, delta: int, session: Session | AsyncSession) -> ProductDTO:
        """
        Apply a signed stock correction (goods received, damage, stock count).

        Raises:
            ProductNotFoundException: Unknown product
            InsufficientStockException: delta would take stock below zero
        """
        async with TransactionManager.atomic(session):
            product = await ProductRepository.get_by_id(product_id, session)
            if product is None:
                raise ProductNotFoundException(product_id)
            if not await ProductRepository.adjust_stock(product_id, delta, session):
                current = await ProductRepository.get_by_id(product_id, session)
                raise InsufficientStockException(product_id, -delta, current.stock_quantity)
            product = await ProductRepository.get_by_id(product_id, session)
        logger.info(f"📦 Stock of product {product_id} adjusted by {delta:+d} -> {product.stock_quantity}")
        if product.stock_quantity <= product.min_stock_level:
            logger.warning(f"Product {product_id} ({product.sku}) at or below minimum stock level "
                           f"({product.stock_quantity} <= {product.min_stock_level})")
        return product

    @staticmethod
    async def delete_product(product_id: int, session: Session | AsyncSession) -> None:
        """Delete a product with its images, cart lines and reviews. Refused once it was ordered."""
        async with TransactionManager.atomic(session):
            if await ProductRepository.get_by_id(product_id, session) is None:
                raise ProductNotFoundException(product_id)
            ordered = await ProductRepository.count_order_items(product_id, session)
            if ordered > 0:
                raise DeletionRestrictedException("product", product_id, "order_items", ordered)
            await ProductRepository.delete(product_id, session)
        logger.info(f"Product {product_id} deleted")
