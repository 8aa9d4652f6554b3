"""
Tests for CartService (persisted cart lines, upsert on add).
"""
from unittest.mock import patch

import pytest

from enums.error_kind import ErrorKind
from exceptions import (
    CartItemNotFoundException,
    InvalidQuantityException,
    ProductNotFoundException,
    UserNotFoundException,
)
from repositories.cart import CartRepository
from services.cart import CartService


class TestCartService:

    @pytest.mark.asyncio
    async def test_add_same_product_twice_upserts(self, factory, test_session):
        user_id = await factory.create_user()
        product_id = await factory.create_product()

        await CartService.add_item(user_id, product_id, 2, test_session)
        line = await CartService.add_item(user_id, product_id, 3, test_session)

        assert line.quantity == 5
        cart = await CartService.get_cart(user_id, test_session)
        assert len(cart) == 1
        assert cart[0].quantity == 5

    @pytest.mark.asyncio
    async def test_add_when_line_appears_concurrently(self, factory, test_session):
        user_id = await factory.create_user()
        product_id = await factory.create_product()
        await factory.add_to_cart(user_id, product_id, 2)
        real_increase = CartRepository.increase_quantity
        calls = []

        async def line_not_there_yet(*args):
            # First lookup misses the line another add_item just inserted
            calls.append(args)
            if len(calls) == 1:
                return False
            return await real_increase(*args)

        with patch.object(CartRepository, "increase_quantity", side_effect=line_not_there_yet):
            line = await CartService.add_item(user_id, product_id, 3, test_session)

        assert line.quantity == 5
        assert len(calls) == 2
        cart = await CartService.get_cart(user_id, test_session)
        assert len(cart) == 1
        assert cart[0].quantity == 5

    @pytest.mark.asyncio
    async def test_set_quantity(self, factory, test_session):
        user_id = await factory.create_user()
        product_id = await factory.create_product()
        await CartService.add_item(user_id, product_id, 2, test_session)

        line = await CartService.set_quantity(user_id, product_id, 7, test_session)

        assert line.quantity == 7

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -3])
    async def test_non_positive_quantity_rejected(self, factory, test_session, quantity):
        user_id = await factory.create_user()
        product_id = await factory.create_product()

        with pytest.raises(InvalidQuantityException) as exc_info:
            await CartService.add_item(user_id, product_id, quantity, test_session)
        assert exc_info.value.kind == ErrorKind.INVALID_QUANTITY

        with pytest.raises(InvalidQuantityException):
            await CartService.set_quantity(user_id, product_id, quantity, test_session)

    @pytest.mark.asyncio
    async def test_unknown_user_or_product(self, factory, test_session):
        user_id = await factory.create_user()
        product_id = await factory.create_product()

        with pytest.raises(UserNotFoundException):
            await CartService.add_item(5555, product_id, 1, test_session)
        with pytest.raises(ProductNotFoundException):
            await CartService.add_item(user_id, 5555, 1, test_session)

    @pytest.mark.asyncio
    async def test_remove_and_clear(self, factory, test_session):
        user_id = await factory.create_user()
        first = await factory.create_product()
        second = await factory.create_product()
        await CartService.add_item(user_id, first, 1, test_session)
        await CartService.add_item(user_id, second, 1, test_session)

        await CartService.remove_item(user_id, first, test_session)
        with pytest.raises(CartItemNotFoundException):
            await CartService.remove_item(user_id, first, test_session)

        assert await CartService.clear_cart(user_id, test_session) == 1
        assert await CartService.get_cart(user_id, test_session) == []
