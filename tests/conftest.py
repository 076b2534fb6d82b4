# tests/conftest.py

"""
Pytest configuration and shared fixtures.

Each test gets a fresh in-memory SQLite database with the permission catalog
and system roles seeded. Route tests identify the caller with an
``X-Test-User`` header instead of a bearer token.
"""

import itertools
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI, Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database.base import Base
from app.core.database.engine import get_db, register_models
from app.features.users.dependencies import get_optional_user
from app.features.users.models import User
from app.features.properties.models import Property
from app.features.permissions.models import Permission, Role, RoleAssignment
from app.features.permissions.seed import seed_all


class Factory:
    """Creates committed rows for tests."""

    _counter = itertools.count(1)

    def __init__(self, db: AsyncSession):
        self.db = db

    async def user(self, name: str = "user", super_admin: bool = False, active: bool = True) -> User:
        n = next(self._counter)
        user = User(
            appwrite_id=f"aw-{name}-{n}",
            email=f"{name}{n}@example.com",
            name=name,
            is_super_admin=super_admin,
            is_active=active,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def property(self, owner: User, name: str = "Villa", property_id: Optional[int] = None) -> Property:
        prop = Property(name=name, owner_user_id=owner.id)
        if property_id is not None:
            prop.id = property_id
        self.db.add(prop)
        await self.db.commit()
        await self.db.refresh(prop)
        return prop

    async def role(self, name: str, keys: list[str]) -> Role:
        result = await self.db.execute(select(Permission).where(Permission.key.in_(keys)))
        role = Role(
            name=name,
            display_name=name.title(),
            is_system=False,
            permissions=list(result.scalars().all()),
        )
        self.db.add(role)
        await self.db.commit()
        await self.db.refresh(role)
        return role

    async def assign(
        self,
        user: User,
        role: Role,
        property_id: Optional[int] = None,
        active: bool = True,
    ) -> RoleAssignment:
        assignment = RoleAssignment(
            user_id=user.id,
            role_id=role.id,
            property_id=property_id,
            is_active=active,
        )
        self.db.add(assignment)
        await self.db.commit()
        await self.db.refresh(assignment)
        return assignment

    async def set_active(self, assignment: RoleAssignment, active: bool) -> None:
        assignment.is_active = active
        await self.db.commit()


@pytest_asyncio.fixture
async def session_factory():
    register_models()
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        await seed_all(session)

    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def make(db) -> Factory:
    return Factory(db)


@pytest_asyncio.fixture
async def system_roles(db) -> dict[str, Role]:
    result = await db.execute(select(Role).where(Role.is_system.is_(True)))
    return {role.name: role for role in result.scalars().all()}


async def _header_user(request: Request, db: AsyncSession = Depends(get_db)) -> Optional[User]:
    user_id = request.headers.get("X-Test-User")
    if user_id is None:
        return None
    return await db.get(User, int(user_id))


@pytest.fixture
def bind_app(session_factory):
    """Point an app's database and caller dependencies at the test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def bind(app: FastAPI) -> FastAPI:
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_optional_user] = _header_user
        return app

    return bind


@pytest_asyncio.fixture
async def client(bind_app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the app, bound to the test database."""
    from app.main import app

    bind_app(app)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def as_user():
    """Headers that make a request come from the given user."""
    def headers(user: User) -> dict[str, str]:
        return {"X-Test-User": str(user.id)}
    return headers
