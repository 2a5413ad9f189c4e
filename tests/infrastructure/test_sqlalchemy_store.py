import pytest
from unittest.mock import AsyncMock, MagicMock
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from case_file_auth.infrastructure.adapters.sqlalchemy_store import (
    Base,
    DocumentUnitModel,
    AccountModel,
    SQLAlchemyCaseFileStore,
)

EMAIL_UUID = "0b4c2e7a-91d3-4f6e-8a2b-5c7d9e1f3a4b"
PROPERTY_UUID = "7e2f9c41-6b8a-4d3e-9f10-2a3b4c5d6e7f"


async def _seeded_store():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        session.add_all(
            [
                DocumentUnitModel(unit_id=999, user_id=42, email_id=EMAIL_UUID),
                DocumentUnitModel(unit_id=1000, user_id=7, document_property_id=PROPERTY_UUID),
                AccountModel(user_id=42, provider="keycloak", provider_account_id="ext-42"),
                AccountModel(user_id=42, provider="github", provider_account_id="gh-42"),
            ]
        )
        await session.commit()
    return engine, SQLAlchemyCaseFileStore(session_factory)


@pytest.mark.asyncio
async def test_lookups_against_sqlite():
    engine, store = await _seeded_store()
    try:
        assert await store.find_unit_id_by_reference(EMAIL_UUID) == 999
        assert await store.find_unit_id_by_reference(PROPERTY_UUID) == 1000
        assert await store.find_unit_id_by_reference("missing") is None

        assert await store.get_unit_owner(999) == 42
        assert await store.get_unit_owner(1) is None

        assert await store.get_provider_account_id(42, "keycloak") == "ext-42"
        assert await store.get_provider_account_id(42, "google") is None
        assert await store.get_user_id_by_provider_account("keycloak", "ext-42") == 42
        assert await store.get_user_id_by_provider_account("keycloak", "gh-42") is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_batch_lookup_matches_either_column():
    engine, store = await _seeded_store()
    try:
        links = await store.find_units_by_references([EMAIL_UUID, PROPERTY_UUID, "nope"])
        by_id = {link.unit_id: link for link in links}

        assert set(by_id) == {999, 1000}
        assert by_id[999].matches(EMAIL_UUID)
        assert by_id[1000].matches(PROPERTY_UUID.upper())
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_batch_lookup_uses_one_query():
    session_mock = AsyncMock()
    result_mock = MagicMock()
    result_mock.all.return_value = [(5, EMAIL_UUID, None)]
    session_mock.execute.return_value = result_mock

    @asynccontextmanager
    async def session_factory():
        yield session_mock

    store = SQLAlchemyCaseFileStore(session_factory)
    links = await store.find_units_by_references([EMAIL_UUID, PROPERTY_UUID])

    assert session_mock.execute.await_count == 1
    assert [link.unit_id for link in links] == [5]


@pytest.mark.asyncio
async def test_empty_batch_skips_database():
    session_factory = MagicMock()
    store = SQLAlchemyCaseFileStore(session_factory)

    assert await store.find_units_by_references([]) == []
    session_factory.assert_not_called()


@pytest.mark.asyncio
async def test_driver_errors_propagate():
    session_mock = AsyncMock()
    session_mock.execute.side_effect = RuntimeError("connection reset")

    @asynccontextmanager
    async def session_factory():
        yield session_mock

    store = SQLAlchemyCaseFileStore(session_factory)
    with pytest.raises(RuntimeError):
        await store.get_unit_owner(1)
