import os
import shutil
import tempfile

# Configure before the app (and its settings) is imported
_TMP = tempfile.mkdtemp(prefix="resume-vault-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["DEBUG"] = "true"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from resume_vault.core.db import AsyncSessionLocal, Base, engine
import resume_vault.core.models.application  # noqa: F401
from resume_vault.core.models.user import User
from resume_vault.core.storage import file_manager
from resume_vault.main import app


def pdf_bytes(size: int = 1024) -> bytes:
    header = b"%PDF-1.4\n"
    return header + b"0" * max(size - len(header), 0)


@pytest.fixture
def make_pdf():
    return pdf_bytes


@pytest_asyncio.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    shutil.rmtree(file_manager.base_dir, ignore_errors=True)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def session(db):
    async with AsyncSessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def signup(client):
    async def _signup(email: str = "alice@example.com", password: str = "s3cret-pass"):
        resp = await client.post("/api/auth/register", json={"email": email, "password": password})
        assert resp.status_code == 201, resp.text
        # Keep identities explicit per request
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['accessToken']}"}
    return _signup


@pytest_asyncio.fixture
async def upload(client):
    async def _upload(headers, display_name="Backend CV", data=None, filename="resume.pdf",
                      content_type="application/pdf", notes=None):
        form = {}
        if display_name is not None:
            form["displayName"] = display_name
        if notes is not None:
            form["notes"] = notes
        files = {"resume": (filename, data if data is not None else pdf_bytes(), content_type)}
        return await client.post("/api/resumes/upload", files=files, data=form, headers=headers)
    return _upload


@pytest_asyncio.fixture
async def users(session):
    """Two users created straight in the database, for service-level tests."""
    alice = User(email="alice@example.com", password_hash="x")
    bob = User(email="bob@example.com", password_hash="x")
    session.add_all([alice, bob])
    await session.commit()
    return alice.id, bob.id
