import os
import tempfile

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RESEND_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""
os.environ["SUPERADMIN_EMAIL"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="vibecrm-uploads-")

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from vibecrm import models  # noqa: E402,F401
from vibecrm.core.rate_limit import limiter  # noqa: E402
from vibecrm.core.security import create_access_token  # noqa: E402
from vibecrm.db.database import Base, get_db  # noqa: E402
from vibecrm.main import app  # noqa: E402
from vibecrm.models.organization import Organization  # noqa: E402
from vibecrm.models.user import AppRole, OrganizationMember, UserRole  # noqa: E402
from vibecrm.services import user_service  # noqa: E402
from vibecrm.services.access_service import AccessScope  # noqa: E402


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    from vibecrm.core.config import settings
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


async def make_user(db, email, password="password123", first_name=None, last_name=None):
    user = await user_service.create_user(db, email, password, first_name, last_name)
    await db.commit()
    return user


async def make_org(db, name, slug=None):
    org = Organization(name=name, slug=slug or name.lower().replace(" ", "-"), plan="free")
    db.add(org)
    await db.commit()
    return org


async def add_member(db, org, user, role=AppRole.MEMBER):
    member = OrganizationMember(organization_id=org.id, user_id=user.id, role=role)
    db.add(member)
    await db.commit()
    return member


async def make_superadmin(db, email="root@example.com"):
    user = await make_user(db, email)
    db.add(UserRole(user_id=user.id, role=AppRole.SUPERADMIN))
    await db.commit()
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


def scope_for(user, org=None, superadmin=False):
    return AccessScope(
        user_id=user.id,
        organization_id=org.id if org is not None else None,
        is_superadmin=superadmin,
    )


@pytest.fixture
async def tenant(db):
    """Organization "Acme" with an owner, an admin and a plain member"""
    org = await make_org(db, "Acme")
    owner = await make_user(db, "owner@acme.example.com", first_name="Olive", last_name="Owner")
    admin = await make_user(db, "admin@acme.example.com")
    member = await make_user(db, "member@acme.example.com")
    await add_member(db, org, owner, AppRole.OWNER)
    await add_member(db, org, admin, AppRole.ADMIN)
    await add_member(db, org, member, AppRole.MEMBER)
    return {"org": org, "owner": owner, "admin": admin, "member": member}
