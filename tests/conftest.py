"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import itertools
import os
import sys
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Set required environment variables before importing app modules
os.environ.setdefault('RUNTIME_ENVIRONMENT', 'TEST')
os.environ.setdefault('DB_URL', 'sqlite+aiosqlite:///:memory:')
os.environ.setdefault('CURRENCY', 'USD')
os.environ.setdefault('ORDER_NUMBER_PREFIX', 'ORD')
os.environ.setdefault('LOG_MASK_SECRETS', 'true')

from db import create_engine_and_session_maker, create_db_and_tables  # noqa: E402
from enums.discount_type import DiscountType  # noqa: E402
from models.address import Address  # noqa: E402
from models.cartItem import CartItem  # noqa: E402
from models.category import Category  # noqa: E402
from models.coupon import Coupon, CouponDTO  # noqa: E402
from models.product import Product  # noqa: E402
from models.user import User  # noqa: E402
from repositories.coupon import CouponRepository  # noqa: E402
from repositories.product import ProductRepository  # noqa: E402


class LedgerFactory:
    """Seeds rows through short-lived committed sessions so tests start from durable state."""

    def __init__(self, session_maker):
        self.session_maker = session_maker
        self._seq = itertools.count(1)

    async def _add(self, entity) -> int:
        async with self.session_maker() as session:
            session.add(entity)
            await session.commit()
            return entity.id

    async def create_user(self, **overrides) -> int:
        n = next(self._seq)
        values = dict(
            username=f"customer{n}",
            email=f"customer{n}@example.com",
            password_hash="x" * 60,
            first_name="Test",
            last_name=f"Customer{n}",
        )
        values.update(overrides)
        return await self._add(User(**values))

    async def create_address(self, user_id: int) -> int:
        return await self._add(Address(
            user_id=user_id,
            street_address="1 Main Street",
            city="Springfield",
            state_province="IL",
            postal_code="62701",
            country="US",
        ))

    async def create_category(self, name: str | None = None, parent_id: int | None = None) -> int:
        n = next(self._seq)
        return await self._add(Category(name=name or f"Category {n}", parent_id=parent_id))

    async def create_product(self, price: str = "10.00", stock: int = 10, category_id: int | None = None,
                             is_active: bool = True, **overrides) -> int:
        if category_id is None:
            category_id = await self.create_category()
        n = next(self._seq)
        values = dict(
            name=f"Product {n}",
            category_id=category_id,
            sku=f"SKU-{n:05d}",
            price=Decimal(price),
            stock_quantity=stock,
            is_active=is_active,
        )
        values.update(overrides)
        return await self._add(Product(**values))

    async def create_coupon(self, code: str, discount_type: DiscountType = DiscountType.PERCENTAGE,
                            value: str = "10", **overrides) -> int:
        values = dict(
            code=code,
            name=f"Coupon {code}",
            discount_type=discount_type,
            discount_value=Decimal(value),
            minimum_order_amount=Decimal("0.00"),
            start_date=datetime.now() - timedelta(days=1),
            end_date=datetime.now() + timedelta(days=30),
        )
        values.update(overrides)
        return await self._add(Coupon(**values))

    async def add_to_cart(self, user_id: int, product_id: int, quantity: int) -> int:
        return await self._add(CartItem(user_id=user_id, product_id=product_id, quantity=quantity))

    async def get_product(self, product_id: int):
        async with self.session_maker() as session:
            return await ProductRepository.get_by_id(product_id, session)

    async def get_coupon(self, code: str) -> CouponDTO | None:
        async with self.session_maker() as session:
            return await CouponRepository.get_by_code(code, session)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    Create a file-backed SQLite database per test.

    A file (not :memory:) so that several sessions see the same database and
    concurrency tests exercise real locking.
    """
    engine, session_maker = create_engine_and_session_maker(f"sqlite+aiosqlite:///{tmp_path / 'order_ledger.db'}")
    await create_db_and_tables(engine)
    yield engine, session_maker
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return test_engine[1]


@pytest_asyncio.fixture
async def test_session(session_maker):
    """Create test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def factory(session_maker):
    return LedgerFactory(session_maker)
