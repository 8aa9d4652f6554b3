from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.address import Address, AddressDTO
from models.order import Order
from models.user import User, UserDTO


class UserRepository:

    @staticmethod
    async def create(user_dto: UserDTO, session: Session | AsyncSession) -> UserDTO:
        user = User(**user_dto.model_dump(exclude_none=True))
        session.add(user)
        await session_flush(session)
        return UserDTO.model_validate(user, from_attributes=True)

    @staticmethod
    async def get_by_id(user_id: int, session: Session | AsyncSession) -> UserDTO | None:
        stmt = select(User).where(User.id == user_id)
        result = await session_execute(stmt, session)
        user = result.scalar_one_or_none()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        return None

    @staticmethod
    async def exists(user_id: int, session: Session | AsyncSession) -> bool:
        stmt = select(User.id).where(User.id == user_id)
        result = await session_execute(stmt, session)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def count_orders(user_id: int, session: Session | AsyncSession) -> int:
        stmt = select(func.count(Order.id)).where(Order.user_id == user_id)
        result = await session_execute(stmt, session)
        return result.scalar()

    @staticmethod
    async def delete(user_id: int, session: Session | AsyncSession) -> None:
        stmt = delete(User).where(User.id == user_id).execution_options(synchronize_session=False)
        await session_execute(stmt, session)


class AddressRepository:

    @staticmethod
    async def create(address_dto: AddressDTO, session: Session | AsyncSession) -> AddressDTO:
        address = Address(**address_dto.model_dump(exclude_none=True))
        session.add(address)
        await session_flush(session)
        return AddressDTO.model_validate(address, from_attributes=True)

    @staticmethod
    async def get_for_user(address_id: int, user_id: int, session: Session | AsyncSession) -> AddressDTO | None:
        stmt = select(Address).where(Address.id == address_id, Address.user_id == user_id)
        result = await session_execute(stmt, session)
        address = result.scalar_one_or_none()
        if address is not None:
            return AddressDTO.model_validate(address, from_attributes=True)
        return None
