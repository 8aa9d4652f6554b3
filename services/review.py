import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.order_status import OrderStatus
from exceptions.base import ConstraintViolationException
from exceptions.product import ProductNotFoundException
from exceptions.review import ReviewNotFoundException, DuplicateReviewException, InvalidRatingException
from exceptions.user import UserNotFoundException
from models.review import ReviewDTO
from repositories.orderItem import OrderItemRepository
from repositories.product import ProductRepository
from repositories.review import ReviewRepository
from repositories.user import UserRepository
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)

# Orders whose goods reached (or left for) the customer count as a purchase
VERIFIED_PURCHASE_STATUSES = [OrderStatus.SHIPPED, OrderStatus.DELIVERED]


class ReviewService:

    @staticmethod
    async def submit_review(user_id: int,
                            product_id: int,
                            rating: int,
                            session: Session | AsyncSession,
                            order_id: int | None = None,
                            title: str | None = None,
                            text: str | None = None) -> ReviewDTO:
        """
        Create the user's single review for a product.

        is_verified_purchase is set only when `order_id` names an order of this
        user, in shipped or delivered state, that contains the product. The
        order link is kept only for verified reviews. New reviews start
        unapproved.

        Raises:
            UserNotFoundException, ProductNotFoundException
            InvalidRatingException: rating outside 1..5
            DuplicateReviewException: the user already reviewed the product
        """
        async with TransactionManager.atomic(session):
            if not await UserRepository.exists(user_id, session):
                raise UserNotFoundException(user_id)
            if await ProductRepository.get_by_id(product_id, session) is None:
                raise ProductNotFoundException(product_id)
            if rating is None or not 1 <= rating <= 5:
                raise InvalidRatingException(rating)
            if await ReviewRepository.get_by_user_and_product(user_id, product_id, session) is not None:
                raise DuplicateReviewException(user_id, product_id)

            verified = False
            if order_id is not None:
                verified = await OrderItemRepository.exists_for_purchase(
                    order_id, user_id, product_id, VERIFIED_PURCHASE_STATUSES, session
                )

            try:
                review = await ReviewRepository.create(ReviewDTO(
                    user_id=user_id,
                    product_id=product_id,
                    order_id=order_id if verified else None,
                    rating=rating,
                    title=title,
                    text=text,
                    is_verified_purchase=verified,
                    is_approved=False,
                    helpful_votes=0
                ), session)
            except IntegrityError as e:
                # Lost the race against a concurrent submission for the same pair
                if "unique" in str(e.orig).lower():
                    raise DuplicateReviewException(user_id, product_id) from e
                raise ConstraintViolationException("product_reviews", str(e.orig)) from e

        logger.info(f"⭐ Review {review.id} by user {user_id} for product {product_id} "
                    f"(rating {rating}, verified={verified})")
        return review

    @staticmethod
    async def approve_review(review_id: int, session: Session | AsyncSession) -> ReviewDTO:
        async with TransactionManager.atomic(session):
            if not await ReviewRepository.approve(review_id, session):
                raise ReviewNotFoundException(review_id)
            review = await ReviewRepository.get_by_id(review_id, session)
        logger.info(f"Review {review_id} approved")
        return review

    @staticmethod
    async def record_helpful_vote(review_id: int, session: Session | AsyncSession) -> ReviewDTO:
        async with TransactionManager.atomic(session):
            if not await ReviewRepository.increment_helpful_votes(review_id, session):
                raise ReviewNotFoundException(review_id)
            review = await ReviewRepository.get_by_id(review_id, session)
        return review

    @staticmethod
    async def get_product_reviews(product_id: int,
                                  session: Session | AsyncSession,
                                  approved_only: bool = True) -> list[ReviewDTO]:
        async with TransactionManager.atomic(session):
            return await ReviewRepository.get_by_product(product_id, session, approved_only)
