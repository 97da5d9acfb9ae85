"""Request session tests."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from audit_api import database
from audit_api.models.orm import AdminUserORM
from audit_api.repositories.user_repository import UserRepository


async def count_users(session_maker: async_sessionmaker[AsyncSession]) -> int:
    async with session_maker() as session:
        return (await session.execute(select(func.count()).select_from(AdminUserORM))).scalar_one()


class TestGetDb:
    """Request-scoped session dependency."""

    @pytest.fixture(autouse=True)
    def use_test_engine(
        self, session_maker: async_sessionmaker[AsyncSession], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(database, "async_session_maker", session_maker)

    async def test_uncommitted_work_is_discarded(
        self, session_maker: async_sessionmaker[AsyncSession], admin_password_hash: str
    ) -> None:
        sessions = database.get_db()
        session = await anext(sessions)
        await UserRepository(session).create_user(
            email="pending@example.com", password_hash=admin_password_hash, name="Pending"
        )

        with pytest.raises(StopAsyncIteration):
            await anext(sessions)

        assert await count_users(session_maker) == 0

    async def test_committed_work_is_kept(
        self, session_maker: async_sessionmaker[AsyncSession], admin_password_hash: str
    ) -> None:
        sessions = database.get_db()
        session = await anext(sessions)
        await UserRepository(session).create_user(
            email="kept@example.com", password_hash=admin_password_hash, name="Kept"
        )
        await session.commit()

        with pytest.raises(StopAsyncIteration):
            await anext(sessions)

        assert await count_users(session_maker) == 1
