"""Unit tests for the DatabaseManager."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import delete, func, inspect, select
from sqlalchemy.pool import StaticPool

from chatauth.core.exceptions import InfrastructureError
from chatauth.infrastructure.persistence.database import DatabaseManager
from chatauth.infrastructure.persistence.models import UserModel, UserSessionModel
from chatauth.infrastructure.persistence.repositories import SessionRepository, UserRepository


@pytest.mark.asyncio
async def test_check_connection(database):
    await database.check_connection()


@pytest.mark.asyncio
async def test_create_tables(database):
    async with database.engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    assert {"users", "user_sessions"} <= set(tables)


@pytest.mark.asyncio
async def test_memory_database_uses_static_pool():
    db = DatabaseManager("sqlite+aiosqlite:///:memory:")
    try:
        assert isinstance(db.engine.pool, StaticPool)
    finally:
        await db.disconnect()


@pytest.mark.asyncio
async def test_unreachable_database(tmp_path):
    db = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'chat.db'}")
    try:
        with pytest.raises(InfrastructureError, match="unreachable"):
            await db.check_connection()
    finally:
        await db.disconnect()


@pytest.mark.asyncio
async def test_session_rolls_back_on_error(database):
    with pytest.raises(RuntimeError):
        async with database.session() as session:
            assert session.is_active
            raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_deleting_user_removes_its_sessions(db_session):
    user = await UserRepository(db_session).insert_user(
        email="alice@example.com",
        username="alice",
        password_hash="digest",
        verification_token="t",
    )
    await SessionRepository(db_session).insert_session(
        user.id, "refresh-1", datetime.now(timezone.utc) + timedelta(days=7)
    )
    await db_session.commit()

    await db_session.execute(
        delete(UserModel)
        .where(UserModel.id == user.id)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()

    result = await db_session.execute(select(func.count()).select_from(UserSessionModel))
    assert result.scalar_one() == 0
