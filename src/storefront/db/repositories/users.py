"""
storefront.db.repositories.users

Repository for `User` profile rows.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert(self, *, user_id: str, email: str, full_name: str | None = None) -> User:
        user = await self._session.get(User, user_id)
        if user is not None:
            user.email = email
            if full_name:
                user.full_name = full_name
            await self._session.flush()
            return user

        user = User(id=user_id, email=email, full_name=full_name)
        self._session.add(user)
        await self._session.flush()
        return user
