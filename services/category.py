import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from exceptions.base import DeletionRestrictedException
from exceptions.product import CategoryNotFoundException, CategoryCycleException
from models.category import CategoryDTO
from repositories.category import CategoryRepository
from repositories.product import ProductRepository
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class CategoryService:

    @staticmethod
    async def _check_parent(category_id: int | None, parent_id: int, session: Session | AsyncSession) -> None:
        """
        Walk up from `parent_id`; reaching `category_id` means the move would close a loop.

        Raises:
            CategoryNotFoundException: parent does not exist
            CategoryCycleException: category would become its own ancestor
        """
        if await CategoryRepository.get_by_id(parent_id, session) is None:
            raise CategoryNotFoundException(parent_id)
        if category_id is None:
            return

        visited = set()
        ancestor_id = parent_id
        while ancestor_id is not None:
            if ancestor_id == category_id or ancestor_id in visited:
                raise CategoryCycleException(category_id, parent_id)
            visited.add(ancestor_id)
            ancestor_id = await CategoryRepository.get_parent_id(ancestor_id, session)

    @staticmethod
    async def create_category(category_dto: CategoryDTO, session: Session | AsyncSession) -> CategoryDTO:
        async with TransactionManager.atomic(session):
            if category_dto.parent_id is not None:
                await CategoryService._check_parent(None, category_dto.parent_id, session)
            category = await CategoryRepository.create(category_dto, session)
        logger.info(f"Category {category.id} '{category.name}' created (parent {category.parent_id})")
        return category

    @staticmethod
    async def move_category(category_id: int, new_parent_id: int | None, session: Session | AsyncSession) -> CategoryDTO:
        async with TransactionManager.atomic(session):
            if await CategoryRepository.get_by_id(category_id, session) is None:
                raise CategoryNotFoundException(category_id)
            if new_parent_id is not None:
                await CategoryService._check_parent(category_id, new_parent_id, session)
            await CategoryRepository.set_parent(category_id, new_parent_id, session)
            category = await CategoryRepository.get_by_id(category_id, session)
        logger.info(f"Category {category_id} moved under {new_parent_id}")
        return category

    @staticmethod
    async def delete_category(category_id: int, session: Session | AsyncSession) -> None:
        """Delete a category; its children become roots. Refused while products use it."""
        async with TransactionManager.atomic(session):
            if await CategoryRepository.get_by_id(category_id, session) is None:
                raise CategoryNotFoundException(category_id)
            product_count = await ProductRepository.count_by_category(category_id, session)
            if product_count > 0:
                raise DeletionRestrictedException("category", category_id, "products", product_count)
            await CategoryRepository.detach_children(category_id, session)
            await CategoryRepository.delete(category_id, session)
        logger.info(f"Category {category_id} deleted")
