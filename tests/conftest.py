"""Pytest configuration and shared fixtures for API tests."""

import os
import tempfile
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test DB before app imports so config/engine use it. DATABASE_URL may point at PostgreSQL instead.
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "ci_api_test.db"),
)
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import ci_api.models  # noqa: E402,F401
from ci_api.core.auth import create_access_token  # noqa: E402
from ci_api.db.base import Base  # noqa: E402
from ci_api.db.session import async_session_maker, engine  # noqa: E402
from ci_api.main import app  # noqa: E402
from ci_api.models import Branch, Build, Commit, Permission, Repository, User  # noqa: E402


class Seed:
    """Ids and tokens of the rows created by the `seed` fixture."""

    owner_id: int
    owner_token: str
    stranger_id: int
    stranger_token: str
    reader_id: int
    reader_token: str
    repo_id: int
    private_repo_id: int
    commit_id: int
    build_ids: list[int]
    last_build_id: int
    master_id: int
    gone_id: int


@pytest_asyncio.fixture
async def clean_db():
    """Recreate all tables so each test starts clean; dispose the pool on the test's own loop."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def client(clean_db):
    """Yield AsyncClient. Lifespan is not run; clean_db creates the schema."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(clean_db):
    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def seed(clean_db) -> Seed:
    """
    Public repo svenfuchs/minimal with three master builds, a branch gone from GitHub,
    and a private repo svenfuchs/secret. owner has push on both, reader pull-only on the
    public one, stranger nothing.
    """
    s = Seed()
    async with async_session_maker() as session:
        owner = User(login="svenfuchs", name="Sven Fuchs")
        stranger = User(login="stranger")
        reader = User(login="reader")
        repo = Repository(owner_name="svenfuchs", name="minimal", private=False, default_branch="master")
        private_repo = Repository(owner_name="svenfuchs", name="secret", private=True, default_branch="master")
        session.add_all([owner, stranger, reader, repo, private_repo])
        await session.flush()

        session.add_all(
            [
                Permission(user_id=owner.id, repository_id=repo.id, admin=True, push=True, pull=True),
                Permission(user_id=owner.id, repository_id=private_repo.id, admin=True, push=True, pull=True),
                Permission(user_id=reader.id, repository_id=repo.id, admin=False, push=False, pull=True),
            ]
        )
        master = Branch(repository_id=repo.id, name="master", exists_on_github=True)
        gone = Branch(repository_id=repo.id, name="gone", exists_on_github=False)
        dev = Branch(repository_id=repo.id, name="dev", exists_on_github=True)
        private_master = Branch(repository_id=private_repo.id, name="master", exists_on_github=True)
        session.add_all([master, gone, dev, private_master])
        commit = Commit(
            repository_id=repo.id,
            sha="add057e66c3e1d59ef1f",
            ref="refs/heads/master",
            message="unignore Gemfile.lock",
            compare_url="https://github.com/svenfuchs/minimal/compare/master...develop",
            committed_at=datetime(2010, 11, 12, 12, 55, tzinfo=timezone.utc),
        )
        session.add(commit)
        await session.flush()

        builds = []
        for number, state in (("1", "passed"), ("2", "passed"), ("3", "configured")):
            build = Build(
                repository_id=repo.id,
                branch_id=master.id,
                commit_id=commit.id,
                number=number,
                state=state,
                previous_state="passed" if number != "1" else None,
                event_type="push",
                duration=None if state == "configured" else 60,
                started_at=datetime(2010, 11, 12, 13, 0, tzinfo=timezone.utc),
                finished_at=None if state == "configured" else datetime(2010, 11, 12, 13, 1, tzinfo=timezone.utc),
            )
            session.add(build)
            await session.flush()
            builds.append(build)
        private_build = Build(
            repository_id=private_repo.id,
            branch_id=private_master.id,
            number="1",
            state="passed",
            event_type="push",
        )
        session.add(private_build)
        await session.flush()
        master.last_build_id = builds[-1].id
        private_master.last_build_id = private_build.id
        await session.commit()

        s.owner_id, s.stranger_id, s.reader_id = owner.id, stranger.id, reader.id
        s.owner_token = create_access_token(owner.id, owner.login)
        s.stranger_token = create_access_token(stranger.id, stranger.login)
        s.reader_token = create_access_token(reader.id, reader.login)
        s.repo_id, s.private_repo_id = repo.id, private_repo.id
        s.commit_id = commit.id
        s.build_ids = [b.id for b in builds]
        s.last_build_id = builds[-1].id
        s.master_id, s.gone_id = master.id, gone.id
    return s


@pytest.fixture
def owner_headers(seed) -> dict:
    return {"Authorization": f"Bearer {seed.owner_token}"}


@pytest.fixture
def stranger_headers(seed) -> dict:
    return {"Authorization": f"Bearer {seed.stranger_token}"}


@pytest.fixture
def reader_headers(seed) -> dict:
    return {"Authorization": f"Bearer {seed.reader_token}"}
