from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.category import Category, CategoryDTO


class CategoryRepository:

    @staticmethod
    async def create(category_dto: CategoryDTO, session: Session | AsyncSession) -> CategoryDTO:
        category = Category(**category_dto.model_dump(exclude_none=True))
        session.add(category)
        await session_flush(session)
        return CategoryDTO.model_validate(category, from_attributes=True)

    @staticmethod
    async def get_by_id(category_id: int, session: Session | AsyncSession) -> CategoryDTO | None:
        stmt = (select(Category)
                .where(Category.id == category_id)
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        category = result.scalar_one_or_none()
        if category is not None:
            return CategoryDTO.model_validate(category, from_attributes=True)
        return None

    @staticmethod
    async def get_parent_id(category_id: int, session: Session | AsyncSession) -> int | None:
        stmt = select(Category.parent_id).where(Category.id == category_id)
        result = await session_execute(stmt, session)
        return result.scalar_one_or_none()

    @staticmethod
    async def set_parent(category_id: int, parent_id: int | None, session: Session | AsyncSession) -> None:
        stmt = (update(Category)
                .where(Category.id == category_id)
                .values(parent_id=parent_id)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def detach_children(category_id: int, session: Session | AsyncSession) -> None:
        """Children become roots (same effect as ON DELETE SET NULL, also where FKs are off)."""
        stmt = (update(Category)
                .where(Category.parent_id == category_id)
                .values(parent_id=None)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)

    @staticmethod
    async def delete(category_id: int, session: Session | AsyncSession) -> None:
        stmt = delete(Category).where(Category.id == category_id).execution_options(synchronize_session=False)
        await session_execute(stmt, session)
