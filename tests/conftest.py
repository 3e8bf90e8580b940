"""
FarmStaff - Test Configuration

Pytest fixtures and configuration.
"""

from datetime import timedelta
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import farmstaff.models  # noqa: F401
from farmstaff.database import Base, get_async_session
from farmstaff.models.leave import LeaveBalance
from farmstaff.models.staff import Staff, StaffRole
from farmstaff.utils.dates import today
from farmstaff.utils.permissions import Principal
from farmstaff.utils.security import create_access_token
from main import app


# In-memory SQLite shared by every connection of a test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database and session for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

async def _create_staff(
    db_session: AsyncSession,
    first_name: str,
    last_name: str,
    email: str,
    role: StaffRole,
    is_active: bool = True,
) -> Staff:
    staff = Staff(
        first_name=first_name,
        last_name=last_name,
        name=f"{first_name} {last_name}",
        email=email,
        role=role,
        is_active=is_active,
    )
    db_session.add(staff)
    await db_session.commit()
    return staff


@pytest_asyncio.fixture
async def admin_staff(db_session: AsyncSession) -> Staff:
    """Create a farm administrator."""
    return await _create_staff(db_session, "Ada", "Okafor", "ada@greenfield.farm", StaffRole.ADMIN)


@pytest_asyncio.fixture
async def vet_staff(db_session: AsyncSession) -> Staff:
    """Create a veterinarian."""
    return await _create_staff(db_session, "Victor", "Mensah", "victor@greenfield.farm", StaffRole.VETERINARIAN)


@pytest_asyncio.fixture
async def worker_staff(db_session: AsyncSession) -> Staff:
    """Create a farm worker."""
    return await _create_staff(db_session, "Wale", "Adeyemi", "wale@greenfield.farm", StaffRole.WORKER)


@pytest_asyncio.fixture
async def other_worker(db_session: AsyncSession) -> Staff:
    """Create a second farm worker."""
    return await _create_staff(db_session, "Grace", "Bello", "grace@greenfield.farm", StaffRole.WORKER)


@pytest.fixture
def admin_principal(admin_staff: Staff) -> Principal:
    return Principal.from_staff(admin_staff)


@pytest.fixture
def vet_principal(vet_staff: Staff) -> Principal:
    return Principal.from_staff(vet_staff)


@pytest.fixture
def worker_principal(worker_staff: Staff) -> Principal:
    return Principal.from_staff(worker_staff)


@pytest.fixture
def other_principal(other_worker: Staff) -> Principal:
    return Principal.from_staff(other_worker)


async def create_balance(db_session: AsyncSession, staff: Staff, total: int, used: int = 0) -> LeaveBalance:
    balance = LeaveBalance(
        staff_id=staff.id,
        year=today().year,
        total_leave_days=total,
        used_leave_days=used,
        remaining_leave_days=total - used,
    )
    db_session.add(balance)
    await db_session.commit()
    return balance


@pytest.fixture
def balance_factory(db_session: AsyncSession):
    """Create a current-year balance for any staff member."""
    async def _create(staff: Staff, total: int, used: int = 0) -> LeaveBalance:
        return await create_balance(db_session, staff, total, used)
    return _create


@pytest_asyncio.fixture
async def worker_balance(db_session: AsyncSession, worker_staff: Staff) -> LeaveBalance:
    """Worker balance with 5 remaining days."""
    return await create_balance(db_session, worker_staff, total=5)


@pytest_asyncio.fixture
async def large_worker_balance(db_session: AsyncSession, worker_staff: Staff) -> LeaveBalance:
    """Worker balance with 30 remaining days."""
    return await create_balance(db_session, worker_staff, total=30)


@pytest.fixture
def day():
    """Calendar day ``n`` days from today."""
    def _day(offset: int):
        return today() + timedelta(days=offset)
    return _day


def auth_headers(staff: Staff) -> Dict[str, str]:
    token = create_access_token({"sub": str(staff.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_staff: Staff) -> Dict[str, str]:
    return auth_headers(admin_staff)


@pytest.fixture
def worker_headers(worker_staff: Staff) -> Dict[str, str]:
    return auth_headers(worker_staff)
