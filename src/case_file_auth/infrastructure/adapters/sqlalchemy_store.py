"""
SQLAlchemy Case File Store.

Implements CaseFileStorePort over two tables:
- document_units: unit id, owning case (user) id, and the e-mail /
  document-property UUIDs the unit can be referenced by
- accounts: links a case (user) id to an identity-provider account

Requirements:
- sqlalchemy[asyncio]
- asyncpg (or another async driver)

Usage:
    from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

    engine = create_async_engine("postgresql+asyncpg://...")
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    store = SQLAlchemyCaseFileStore(session_factory)
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Callable, Sequence

from sqlalchemy import Column, Integer, String, select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import declarative_base

from case_file_auth.infrastructure.ports.store import (
    CaseFileStorePort,
    DocumentUnitLink,
)


logger = logging.getLogger("case_file_auth.infrastructure.adapters.sqlalchemy")

Base = declarative_base()

# Type for async session factory
AsyncSessionFactory = Callable[[], AsyncSession]


# ═══════════════════════════════════════════════════════════════
# SQLALCHEMY MODELS
# ═══════════════════════════════════════════════════════════════


class DocumentUnitModel(Base):
    """
    Document units (the records case files are made of).

    Only the columns the authorization core reads are mapped; extend
    the model in the host application for the rest.
    """

    __tablename__ = "document_units"

    unit_id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    email_id = Column(String(36), nullable=True, index=True)
    document_property_id = Column(String(36), nullable=True, index=True)


class AccountModel(Base):
    """Identity-provider accounts linked to local users."""

    __tablename__ = "accounts"

    user_id = Column(Integer, primary_key=True)
    provider = Column(String(255), primary_key=True)
    provider_account_id = Column(String(255), nullable=False, index=True)


# ═══════════════════════════════════════════════════════════════
# STORE ADAPTER
# ═══════════════════════════════════════════════════════════════


class SQLAlchemyCaseFileStore(CaseFileStorePort):
    """
    SQLAlchemy implementation of CaseFileStorePort.

    Read-only; errors from the driver propagate to the caller, which
    decides whether to soft-fail or raise.
    """

    def __init__(
        self,
        session_factory: AsyncSessionFactory,
        unit_model: type = DocumentUnitModel,
        account_model: type = AccountModel,
    ):
        """
        Initialize the store.

        Args:
            session_factory: Async session factory from async_sessionmaker
            unit_model: Model mapping document_units (for custom schemas)
            account_model: Model mapping accounts (for custom schemas)
        """
        self.session_factory = session_factory
        self.unit_model = unit_model
        self.account_model = account_model

    @asynccontextmanager
    async def _session_scope(self):
        """Provide a session scope for read operations."""
        async with self.session_factory() as session:
            yield session

    async def find_unit_id_by_reference(self, reference: str) -> Optional[int]:
        unit = self.unit_model
        async with self._session_scope() as db:
            stmt = (
                select(unit.unit_id)
                .where(
                    or_(
                        unit.email_id == reference,
                        unit.document_property_id == reference,
                    )
                )
                .limit(1)
            )
            result = await db.execute(stmt)
            unit_id = result.scalar_one_or_none()

        logger.debug(f"Reference {reference} resolved to unit {unit_id}")
        return unit_id

    async def find_units_by_references(
        self, references: Sequence[str]
    ) -> list[DocumentUnitLink]:
        if not references:
            return []
        unit = self.unit_model
        refs = list(references)
        async with self._session_scope() as db:
            stmt = select(
                unit.unit_id, unit.email_id, unit.document_property_id
            ).where(
                or_(
                    unit.email_id.in_(refs),
                    unit.document_property_id.in_(refs),
                )
            )
            result = await db.execute(stmt)
            rows = result.all()

        return [
            DocumentUnitLink(
                unit_id=row[0],
                email_id=row[1],
                document_property_id=row[2],
            )
            for row in rows
        ]

    async def get_unit_owner(self, unit_id: int) -> Optional[int]:
        unit = self.unit_model
        async with self._session_scope() as db:
            stmt = select(unit.user_id).where(unit.unit_id == unit_id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

    async def get_provider_account_id(
        self, user_id: int, provider: str
    ) -> Optional[str]:
        account = self.account_model
        async with self._session_scope() as db:
            stmt = select(account.provider_account_id).where(
                account.user_id == user_id,
                account.provider == provider,
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

    async def get_user_id_by_provider_account(
        self, provider: str, provider_account_id: str
    ) -> Optional[int]:
        account = self.account_model
        async with self._session_scope() as db:
            stmt = (
                select(account.user_id)
                .where(
                    account.provider == provider,
                    account.provider_account_id == provider_account_id,
                )
                .limit(1)
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
