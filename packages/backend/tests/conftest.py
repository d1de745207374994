"""Test fixtures.

Two layers of isolation:

1. Core unit tests (authenticator, resolver, gates) run against
   FakeCredentialStore, an in-memory stand-in for the four store lookups.
2. API tests run the real app against a fresh in-memory SQLite database per
   test (aiosqlite + StaticPool so every session sees the same connection).
   Only get_db is overridden; the real auth pipeline runs.
"""

import os

# Must be set before caoguia.config builds its settings singleton
os.environ.setdefault("CAOGUIA_JWT_SECRET", "test-signing-secret-0123456789abcdef")
os.environ.setdefault("CAOGUIA_BCRYPT_ROUNDS", "4")

from datetime import timedelta  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from caoguia.auth.jwt import TokenCodec  # noqa: E402
from caoguia.auth.password import hash_password  # noqa: E402
from caoguia.config import AuthConfig  # noqa: E402
from caoguia.db.engine import get_db  # noqa: E402
from caoguia.db.models import Base, Institution, User  # noqa: E402
from caoguia.main import app  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"
PASSWORD = "correct-horse"


# ═══════════════════════════════════════════════════════════
# Core: fake store + codec
# ═══════════════════════════════════════════════════════════


class FakeCredentialStore:
    """In-memory CredentialLookup. Filters mirror the SQL WHERE clauses."""

    def __init__(self):
        self.users: dict[int, User] = {}
        self.institutions: dict[int, Institution] = {}
        self.lookups = 0

    def add_user(self, id: int, email: str, password: str = PASSWORD, **fields) -> User:
        user = User(
            id=id,
            name=fields.pop("name", f"User {id}"),
            email=email,
            password_hash=hash_password(password, rounds=4),
            is_admin=fields.pop("is_admin", False),
            is_active=fields.pop("is_active", True),
            approval_status=fields.pop("approval_status", "pending"),
            **fields,
        )
        self.users[id] = user
        return user

    def add_institution(
        self, id: int, email: str, password: str = PASSWORD, **fields
    ) -> Institution:
        institution = Institution(
            id=id,
            legal_name=fields.pop("legal_name", f"Institution {id}"),
            cnpj=fields.pop("cnpj", f"{id:014d}"),
            email=email,
            password_hash=hash_password(password, rounds=4),
            is_active=fields.pop("is_active", True),
            approval_status=fields.pop("approval_status", "approved"),
            **fields,
        )
        self.institutions[id] = institution
        return institution

    async def find_active_user_by_email(self, email: str) -> Optional[User]:
        self.lookups += 1
        return next(
            (u for u in self.users.values() if u.email == email and u.is_active),
            None,
        )

    async def find_institution_by_email(self, email: str) -> Optional[Institution]:
        self.lookups += 1
        return next(
            (i for i in self.institutions.values() if i.email == email), None
        )

    async def find_active_user_by_id(self, user_id: int) -> Optional[User]:
        self.lookups += 1
        user = self.users.get(user_id)
        return user if user and user.is_active else None

    async def find_active_institution_by_id(
        self, institution_id: int
    ) -> Optional[Institution]:
        self.lookups += 1
        institution = self.institutions.get(institution_id)
        return institution if institution and institution.is_active else None


@pytest.fixture()
def store():
    return FakeCredentialStore()


@pytest.fixture()
def codec():
    return TokenCodec(
        AuthConfig(secret="unit-test-secret-0123456789abcdef", token_lifetime=timedelta(hours=1))
    )


# ═══════════════════════════════════════════════════════════
# API: SQLite database + HTTP client
# ═══════════════════════════════════════════════════════════


@pytest_asyncio.fixture()
async def db_session():
    """Fresh schema per test, dropped with the in-memory database."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # SQLite ignores foreign keys unless asked; PostgreSQL always enforces them
    @event.listens_for(engine.sync_engine, "connect")
    def _enforce_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with get_db overridden. Auth is NOT mocked."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    """Insert a user row directly (bypassing registration)."""

    async def _make(
        email: str,
        password: str = PASSWORD,
        name: str = "Maria Silva",
        is_admin: bool = False,
        is_active: bool = True,
    ) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            is_admin=is_admin,
            is_active=is_active,
            approval_status="approved" if is_admin else "pending",
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_institution(db_session):
    """Insert an institution row directly, in any approval state."""

    async def _make(
        email: str,
        cnpj: str,
        password: str = PASSWORD,
        legal_name: str = "Escola de Cães-Guia Helen Keller",
        approval_status: str = "approved",
        is_active: bool = True,
    ) -> Institution:
        institution = Institution(
            legal_name=legal_name,
            cnpj=cnpj,
            email=email,
            password_hash=hash_password(password),
            approval_status=approval_status,
            is_active=is_active,
        )
        db_session.add(institution)
        await db_session.commit()
        await db_session.refresh(institution)
        return institution

    return _make


@pytest.fixture()
def login(client):
    """Log in through the real endpoint and return auth headers."""

    async def _login(email: str, password: str = PASSWORD, institution: bool = False) -> dict:
        path = "/api/v1/auth/login-institution" if institution else "/api/v1/auth/login"
        r = await client.post(path, json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _login
