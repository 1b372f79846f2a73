import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from decimal import Decimal
from typing import AsyncGenerator, Callable, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tuition.core.enums import StudentStatus
from tuition.core.models import BillingItem, Student
from tuition.db.session import Base, get_db
from tuition.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory SQLite database per test; overrides the FastAPI dependency."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_student(db_session: AsyncSession) -> Callable:
    counter = {"n": 0}

    async def _make(
        status: StudentStatus = StudentStatus.ENROLLED,
        cohort: Optional[str] = "2024-04",
        nationality: Optional[str] = "VN",
    ) -> Student:
        counter["n"] += 1
        student = Student(
            student_number=f"S{counter['n']:04d}",
            name_en=f"Student {counter['n']}",
            nationality=nationality,
            cohort=cohort,
            status=status.value,
        )
        db_session.add(student)
        await db_session.commit()
        await db_session.refresh(student)
        return student

    return _make


@pytest.fixture()
def make_item(db_session: AsyncSession) -> Callable:
    async def _make(
        code: str,
        unit_price: Optional[str],
        display_order: int = 0,
        is_active: bool = True,
        name: Optional[str] = None,
    ) -> BillingItem:
        item = BillingItem(
            code=code,
            name=name or code.title(),
            unit_price=Decimal(unit_price) if unit_price is not None else None,
            display_order=display_order,
            is_active=is_active,
        )
        db_session.add(item)
        await db_session.commit()
        await db_session.refresh(item)
        return item

    return _make
