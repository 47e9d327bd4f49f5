"""Shared pytest fixtures for DocFlow tests."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from docflow.app import app
from docflow.db import get_session
from docflow.models import Base
from docflow.schemas import AddressIn, ContragentCreate, ContragentParameters, EmployeeIn
from docflow.services.documents import StateService

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


# In-memory SQLite unless a real database is provided
TEST_DATABASE_URL = os.environ.get("DOCFLOW_TEST_DATABASE_URL", "sqlite+aiosqlite://")


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine.

    This creates all tables at the start and drops them at the end.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory database
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    else:
        engine = create_async_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(
    test_engine: AsyncEngine,
) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session with the state lookup table seeded.

    Everything the test wrote is rolled back at the end.
    """
    async_session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        await StateService(session).seed()
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests all run on ``db_session``."""

    async def _session_override() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_session] = _session_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# Type aliases for factory fixtures
MakeAddress = Callable[..., AddressIn]
MakePersonDto = Callable[..., ContragentCreate]
MakeCompanyDto = Callable[..., ContragentCreate]


@pytest.fixture
def make_address() -> MakeAddress:
    """Factory fixture for address input."""

    def _make(**overrides: Any) -> AddressIn:
        fields: dict[str, Any] = {
            "postal_index": "101000",
            "country": "Russia",
            "city": "Moscow",
            "street": "Lenina",
            "house_number": "1",
            "apartment_number": None,
        }
        fields.update(overrides)
        return AddressIn(**fields)

    return _make


@pytest.fixture
def make_person_dto(make_address: MakeAddress) -> MakePersonDto:
    """Factory fixture for a new person counterparty."""

    def _make(
        *,
        first_name: str | None = "Ivan",
        middle_name: str | None = "Ivanovich",
        last_name: str | None = "Ivanov",
        addresses: list[AddressIn] | None = None,
    ) -> ContragentCreate:
        return ContragentCreate(
            type="person",
            parameters=ContragentParameters(
                first_name=first_name, middle_name=middle_name, last_name=last_name
            ),
            addresses=addresses if addresses is not None else [make_address()],
        )

    return _make


@pytest.fixture
def make_company_dto(make_address: MakeAddress) -> MakeCompanyDto:
    """Factory fixture for a new company counterparty."""

    def _make(
        *,
        name: str | None = "Romashka",
        addresses: list[AddressIn] | None = None,
        employees: list[EmployeeIn] | None = None,
    ) -> ContragentCreate:
        if employees is None:
            employees = [
                EmployeeIn(
                    first_name="Petr",
                    middle_name="Petrovich",
                    last_name="Petrov",
                    person_position="Director",
                )
            ]
        return ContragentCreate(
            type="company",
            parameters=ContragentParameters(name_company=name),
            addresses=addresses if addresses is not None else [make_address(street="Mira")],
            employees=employees,
        )

    return _make
