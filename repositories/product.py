from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.orderItem import OrderItem
from models.product import Product, ProductDTO


class ProductRepository:

    @staticmethod
    async def create(product_dto: ProductDTO, session: Session | AsyncSession) -> ProductDTO:
        product = Product(**product_dto.model_dump(exclude_none=True))
        session.add(product)
        await session_flush(session)
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def get_by_id(product_id: int, session: Session | AsyncSession) -> ProductDTO | None:
        # populate_existing: stock columns are changed with Core UPDATEs that bypass the identity map
        stmt = (select(Product)
                .where(Product.id == product_id)
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        product = result.scalar_one_or_none()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        return None

    @staticmethod
    async def get_many_for_update(product_ids: list[int], session: Session | AsyncSession) -> dict[int, ProductDTO]:
        """
        Load several products in one query, locking their rows where the dialect supports it.

        Rows are read in ascending id order so concurrent checkouts acquire
        row locks in the same order and cannot deadlock each other.
        On SQLite FOR UPDATE is not rendered; BEGIN IMMEDIATE already holds
        the database write lock.
        """
        if not product_ids:
            return {}
        stmt = (select(Product)
                .where(Product.id.in_(product_ids))
                .order_by(Product.id)
                .with_for_update()
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        return {product.id: ProductDTO.model_validate(product, from_attributes=True)
                for product in result.scalars().all()}

    @staticmethod
    async def decrement_stock(product_id: int, quantity: int, session: Session | AsyncSession) -> bool:
        """
        Compare-and-decrement: only applies while the product is active and
        still holds at least `quantity` units.

        Returns:
            True if the row was updated, False if the guard failed
        """
        stmt = (update(Product)
                .where(Product.id == product_id,
                       Product.is_active == True,
                       Product.stock_quantity >= quantity)
                .values(stock_quantity=Product.stock_quantity - quantity,
                        version=Product.version + 1)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def increment_stock(product_id: int, quantity: int, session: Session | AsyncSession) -> bool:
        """Returns False when the product row no longer exists."""
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(stock_quantity=Product.stock_quantity + quantity,
                        version=Product.version + 1)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def adjust_stock(product_id: int, delta: int, session: Session | AsyncSession) -> bool:
        """Apply a signed stock delta unless it would take stock below zero."""
        stmt = (update(Product)
                .where(Product.id == product_id,
                       Product.stock_quantity + delta >= 0)
                .values(stock_quantity=Product.stock_quantity + delta,
                        version=Product.version + 1)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def count_order_items(product_id: int, session: Session | AsyncSession) -> int:
        stmt = select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id)
        result = await session_execute(stmt, session)
        return result.scalar()

    @staticmethod
    async def count_by_category(category_id: int, session: Session | AsyncSession) -> int:
        stmt = select(func.count(Product.id)).where(Product.category_id == category_id)
        result = await session_execute(stmt, session)
        return result.scalar()

    @staticmethod
    async def delete(product_id: int, session: Session | AsyncSession) -> None:
        stmt = delete(Product).where(Product.id == product_id).execution_options(synchronize_session=False)
        await session_execute(stmt, session)
