from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.review import Review, ReviewDTO


class ReviewRepository:

    @staticmethod
    async def create(review_dto: ReviewDTO, session: Session | AsyncSession) -> ReviewDTO:
        review = Review(**review_dto.model_dump(exclude_none=True))
        session.add(review)
        await session_flush(session)
        return ReviewDTO.model_validate(review, from_attributes=True)

    @staticmethod
    async def get_by_id(review_id: int, session: Session | AsyncSession) -> ReviewDTO | None:
        stmt = (select(Review)
                .where(Review.id == review_id)
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        review = result.scalar_one_or_none()
        if review is not None:
            return ReviewDTO.model_validate(review, from_attributes=True)
        return None

    @staticmethod
    async def get_by_user_and_product(user_id: int, product_id: int, session: Session | AsyncSession) -> ReviewDTO | None:
        stmt = select(Review).where(Review.user_id == user_id, Review.product_id == product_id)
        result = await session_execute(stmt, session)
        review = result.scalar_one_or_none()
        if review is not None:
            return ReviewDTO.model_validate(review, from_attributes=True)
        return None

    @staticmethod
    async def get_by_product(product_id: int, session: Session | AsyncSession, approved_only: bool = True) -> list[ReviewDTO]:
        stmt = select(Review).where(Review.product_id == product_id)
        if approved_only:
            stmt = stmt.where(Review.is_approved == True)
        stmt = stmt.order_by(Review.helpful_votes.desc(), Review.created_at.desc())
        result = await session_execute(stmt, session)
        return [ReviewDTO.model_validate(r, from_attributes=True) for r in result.scalars().all()]

    @staticmethod
    async def approve(review_id: int, session: Session | AsyncSession) -> bool:
        stmt = (update(Review)
                .where(Review.id == review_id)
                .values(is_approved=True)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def increment_helpful_votes(review_id: int, session: Session | AsyncSession) -> bool:
        stmt = (update(Review)
                .where(Review.id == review_id)
                .values(helpful_votes=Review.helpful_votes + 1)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1
