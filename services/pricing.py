from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from models.order import OrderChargesDTO
from models.orderItem import OrderItemDTO
from utils.money import ZERO


class PricingService:
    """Tax and shipping collaborator used by checkout."""

    @staticmethod
    async def calculate_charges(
        user_id: int,
        items: list[OrderItemDTO],
        subtotal: Decimal,
        shipping_address_id: int | None,
        shipping_method: str | None,
        session: Session | AsyncSession
    ) -> OrderChargesDTO:
        """
        Calculate tax and shipping for an order being placed.

        The ledger ships without tax tables or carrier rates, so both charges
        are zero. Deployments replace this method (or patch it in tests) with
        their own rules. Whatever is returned is validated by the caller:
        negative amounts are rejected.

        Args:
            user_id: Customer placing the order
            items: Item snapshots (unit price, quantity) of the order
            subtotal: Sum of item totals
            shipping_address_id: Destination, if known
            shipping_method: Requested shipping method, if any
            session: Database session (same transaction as the checkout)

        Returns:
            OrderChargesDTO with tax_amount and shipping_cost
        """
        return OrderChargesDTO(tax_amount=ZERO, shipping_cost=ZERO)
