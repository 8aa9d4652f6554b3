import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import get_db_session
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from exceptions.base import ConstraintViolationException
from exceptions.cart import EmptyCartException
from exceptions.order import (
    OrderNotFoundException,
    InsufficientStockException,
    InvalidQuantityException,
    InvalidStatusTransitionException
)
from exceptions.product import ProductNotFoundException
from exceptions.user import UserNotFoundException, AddressNotFoundException
from models.cartItem import CartItemDTO
from models.order import OrderDTO, OrderDetailsDTO
from models.orderItem import OrderItemDTO
from repositories.cart import CartRepository
from repositories.coupon import CouponRepository
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository, AddressRepository
from services.coupon import CouponService
from services.pricing import PricingService
from utils.money import to_money, ZERO
from utils.order_state_machine import OrderStateMachine, PaymentStateMachine
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    def _merge_lines(lines: list[CartItemDTO]) -> dict[int, int]:
        """
        Collapse repeated products into one line, keeping first-seen order.

        Raises:
            InvalidQuantityException: If any line has quantity <= 0
        """
        merged: dict[int, int] = {}
        for line in lines:
            if line.quantity is None or line.quantity <= 0:
                raise InvalidQuantityException(line.product_id, line.quantity)
            merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
        return merged

    @staticmethod
    async def place_order(user_id: int,
                          session: Session | AsyncSession,
                          cart_lines: list[CartItemDTO] | None = None,
                          coupon_code: str | None = None,
                          shipping_address_id: int | None = None,
                          billing_address_id: int | None = None,
                          shipping_method: str | None = None) -> OrderDetailsDTO:
        """
        Turn a cart snapshot into a pending order, atomically.

        Flow:
        1. Validate lines (positive quantities, duplicates merged)
        2. Check user and addresses
        3. Load products (ascending id, FOR UPDATE) and check stock
        4. Snapshot prices into order items, compute subtotal
        5. Validate coupon and compute discount
        6. Ask PricingService for tax and shipping
        7. Compare-and-decrement stock for every product
        8. Insert order + items, redeem coupon, remove consumed cart lines

        Either everything above is committed or nothing is.

        Args:
            user_id: Customer placing the order
            session: Database session
            cart_lines: (product_id, quantity) lines; the user's persisted cart when None
            coupon_code: Optional coupon code
            shipping_address_id: Optional address of the user
            billing_address_id: Optional address of the user
            shipping_method: Free-text shipping method

        Returns:
            OrderDetailsDTO with the order and its item snapshots

        Raises:
            InvalidQuantityException, EmptyCartException, UserNotFoundException,
            AddressNotFoundException, ProductNotFoundException,
            InsufficientStockException, CouponNotFoundException,
            CouponExpiredException, CouponUsageExceededException,
            CouponMinimumNotMetException, ConstraintViolationException
        """
        async with TransactionManager.atomic(session):
            if cart_lines is None:
                cart_lines = await CartRepository.get_items(user_id, session)
            quantities = OrderService._merge_lines(cart_lines)
            if not quantities:
                raise EmptyCartException(user_id)

            if not await UserRepository.exists(user_id, session):
                raise UserNotFoundException(user_id)
            for address_id in (shipping_address_id, billing_address_id):
                if address_id is not None and await AddressRepository.get_for_user(address_id, user_id, session) is None:
                    raise AddressNotFoundException(address_id, user_id)

            products = await ProductRepository.get_many_for_update(sorted(quantities), session)
            items: list[OrderItemDTO] = []
            for product_id, quantity in quantities.items():
                product = products.get(product_id)
                if product is None:
                    raise ProductNotFoundException(product_id)
                if not product.is_active:
                    logger.info(f"Checkout rejected for user {user_id}: product {product_id} is inactive")
                    raise InsufficientStockException(product_id, quantity, 0)
                if product.stock_quantity < quantity:
                    logger.info(f"Checkout rejected for user {user_id}: product {product_id} "
                                f"has {product.stock_quantity}, requested {quantity}")
                    raise InsufficientStockException(product_id, quantity, product.stock_quantity)

                unit_price = to_money(product.price)
                items.append(OrderItemDTO(
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=unit_price * quantity,
                    product_name=product.name,
                    product_sku=product.sku
                ))

            subtotal = to_money(sum((item.total_price for item in items), ZERO))

            coupon = None
            discount = ZERO
            if coupon_code:
                coupon = await CouponService.validate_coupon(coupon_code, subtotal, session)
                discount = CouponService.calculate_discount(coupon, subtotal)

            charges = await PricingService.calculate_charges(
                user_id, items, subtotal, shipping_address_id, shipping_method, session
            )
            tax_amount = to_money(charges.tax_amount)
            shipping_cost = to_money(charges.shipping_cost)
            if tax_amount < ZERO or shipping_cost < ZERO:
                raise ConstraintViolationException(
                    "order_charges_non_negative",
                    f"Pricing returned negative charges (tax {tax_amount}, shipping {shipping_cost})",
                    details={'tax_amount': str(tax_amount), 'shipping_cost': str(shipping_cost)}
                )

            # Discount can never push the total below zero
            discount = min(discount, subtotal + tax_amount + shipping_cost)
            total_amount = subtotal + tax_amount + shipping_cost - discount

            for item in items:
                decremented = await ProductRepository.decrement_stock(item.product_id, item.quantity, session)
                if not decremented:
                    current = await ProductRepository.get_by_id(item.product_id, session)
                    available = current.stock_quantity if current is not None and current.is_active else 0
                    raise InsufficientStockException(item.product_id, item.quantity, available)

            order_number = await OrderRepository.get_next_order_number(session)
            order = await OrderRepository.create(OrderDTO(
                user_id=user_id,
                order_number=order_number,
                order_status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                subtotal=subtotal,
                tax_amount=tax_amount,
                shipping_cost=shipping_cost,
                discount_amount=discount,
                total_amount=total_amount,
                currency=config.CURRENCY,
                shipping_address_id=shipping_address_id,
                billing_address_id=billing_address_id,
                shipping_method=shipping_method
            ), session)

            for item in items:
                item.order_id = order.id
            items = await OrderItemRepository.create_many(items, session)

            if coupon is not None and discount > ZERO:
                await CouponService.redeem(coupon, user_id, order.id, discount, session)

            await CartRepository.remove_products(user_id, list(quantities), session)

        logger.info(f"✅ Order {order.order_number} (id {order.id}) placed by user {user_id}: "
                    f"{len(items)} items, total {order.total_amount} {order.currency.value}")
        return OrderDetailsDTO(
            order=order,
            items=items,
            coupon_code=coupon.code if coupon is not None and discount > ZERO else None
        )

    @staticmethod
    @TransactionManager.with_retry()
    async def checkout(user_id: int, **kwargs) -> OrderDetailsDTO:
        """
        place_order() in its own session, retried on lock contention.

        Each attempt opens a fresh session so nothing from a failed attempt
        leaks into the next one.
        """
        async with get_db_session() as session:
            return await OrderService.place_order(user_id, session, **kwargs)

    @staticmethod
    async def get_order(order_id: int, session: Session | AsyncSession) -> OrderDetailsDTO:
        async with TransactionManager.atomic(session):
            order = await OrderRepository.get_by_id(order_id, session)
            if order is None:
                raise OrderNotFoundException(order_id)
            items = await OrderItemRepository.get_by_order_id(order_id, session)
            usage = await CouponRepository.get_usage_by_order_id(order_id, session)
            coupon = await CouponRepository.get_by_id(usage.coupon_id, session) if usage is not None else None
        return OrderDetailsDTO(order=order, items=items, coupon_code=coupon.code if coupon else None)

    @staticmethod
    async def transition_order_status(order_id: int,
                                      new_status: OrderStatus,
                                      session: Session | AsyncSession,
                                      payment_status: PaymentStatus | None = None,
                                      tracking_number: str | None = None) -> OrderDTO:
        """
        Move an order through its lifecycle.

        pending -> confirmed -> processing -> shipped -> delivered
        pending | confirmed | processing -> cancelled (items are restocked)
        shipped | delivered -> refunded (payment_status must move to refunded
        or partially_refunded in the same call, stock is not returned)

        The status write is compare-and-set on the status read at the start,
        so of two concurrent transitions from the same state only one applies.

        Raises:
            OrderNotFoundException: Unknown order
            InvalidStatusTransitionException: Transition not allowed (or lost a race)
        """
        async with TransactionManager.atomic(session):
            order = await OrderRepository.get_by_id(order_id, session)
            if order is None:
                raise OrderNotFoundException(order_id)

            current_status = order.order_status
            # A refund already recorded through transition_payment_status satisfies the refund rule
            effective_payment_status = payment_status or order.payment_status
            if not OrderStateMachine.validate_and_log_transition(
                    order_id, current_status.value, new_status.value, effective_payment_status.value):
                raise InvalidStatusTransitionException(order_id, current_status.value, new_status.value)

            values = {}
            expected_payment_status = None
            if payment_status is not None and payment_status != order.payment_status:
                if not PaymentStateMachine.validate_and_log_transition(
                        order_id, order.payment_status.value, payment_status.value):
                    raise InvalidStatusTransitionException(
                        order_id, order.payment_status.value, payment_status.value, field="payment_status"
                    )
                values['payment_status'] = payment_status
                expected_payment_status = order.payment_status

            now = datetime.now()
            if new_status == OrderStatus.SHIPPED:
                values['shipped_date'] = now
                if tracking_number:
                    values['tracking_number'] = tracking_number
            elif new_status == OrderStatus.DELIVERED:
                values['delivered_date'] = now
            elif new_status == OrderStatus.CANCELLED:
                values['cancelled_date'] = now

            applied = await OrderRepository.compare_and_set_status(
                order_id, current_status, new_status, session,
                current_payment_status=expected_payment_status, **values
            )
            if not applied:
                latest = await OrderRepository.get_by_id(order_id, session)
                if latest.order_status == current_status and expected_payment_status is not None:
                    logger.warning(f"Order {order_id} payment changed concurrently: expected "
                                   f"{expected_payment_status.value}, found {latest.payment_status.value}")
                    raise InvalidStatusTransitionException(
                        order_id, latest.payment_status.value, payment_status.value, field="payment_status"
                    )
                logger.warning(f"Order {order_id} changed concurrently: expected {current_status.value}, "
                               f"found {latest.order_status.value}")
                raise InvalidStatusTransitionException(order_id, latest.order_status.value, new_status.value)

            if new_status == OrderStatus.CANCELLED:
                await OrderService._restock(order_id, session)

            updated = await OrderRepository.get_by_id(order_id, session)
        return updated

    @staticmethod
    async def _restock(order_id: int, session: Session | AsyncSession) -> None:
        items = await OrderItemRepository.get_by_order_id(order_id, session)
        for item in items:
            restocked = await ProductRepository.increment_stock(item.product_id, item.quantity, session)
            if restocked:
                logger.info(f"📦 Restocked {item.quantity} x product {item.product_id} from cancelled order {order_id}")
            else:
                logger.warning(f"RECONCILIATION: product {item.product_id} ({item.product_sku}) of cancelled "
                               f"order {order_id} no longer exists, {item.quantity} units not restocked")

    @staticmethod
    async def cancel_order(order_id: int, session: Session | AsyncSession) -> OrderDTO:
        return await OrderService.transition_order_status(order_id, OrderStatus.CANCELLED, session)

    @staticmethod
    async def transition_payment_status(order_id: int,
                                        new_payment_status: PaymentStatus,
                                        session: Session | AsyncSession) -> OrderDTO:
        """
        pending -> paid | failed, failed -> pending,
        paid -> refunded | partially_refunded, partially_refunded -> refunded
        """
        async with TransactionManager.atomic(session):
            order = await OrderRepository.get_by_id(order_id, session)
            if order is None:
                raise OrderNotFoundException(order_id)

            current = order.payment_status
            if not PaymentStateMachine.validate_and_log_transition(order_id, current.value, new_payment_status.value):
                raise InvalidStatusTransitionException(
                    order_id, current.value, new_payment_status.value, field="payment_status"
                )

            applied = await OrderRepository.compare_and_set_payment_status(
                order_id, current, new_payment_status, session
            )
            if not applied:
                latest = await OrderRepository.get_by_id(order_id, session)
                raise InvalidStatusTransitionException(
                    order_id, latest.payment_status.value, new_payment_status.value, field="payment_status"
                )
            updated = await OrderRepository.get_by_id(order_id, session)
        return updated
