"""Test fixtures for the backend."""
import os
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_backend.db")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["GEMINI_API_KEY"] = ""

from whisperbox import models  # noqa: E402
from whisperbox.ai import GenerationError, get_text_generator  # noqa: E402
from whisperbox.database import engine  # noqa: E402
from whisperbox.mailer import MailDeliveryError, get_mailer  # noqa: E402
from whisperbox.main import app  # noqa: E402


test_db_path = Path("test_backend.db")


class StubMailer:
    """Records verification emails instead of talking to SMTP."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []
        self.fail = False

    async def send_verification_email(self, email: str, username: str, code: str) -> None:
        if self.fail:
            raise MailDeliveryError("Failed to send verification email")
        self.sent.append({"email": email, "username": username, "code": code})

    def last_code(self, username: str) -> str:
        for entry in reversed(self.sent):
            if entry["username"] == username:
                return entry["code"]
        raise AssertionError(f"no verification email for {username}")


class StubGenerator:
    """Returns a canned reply, or raises, and keeps the prompts it saw."""

    def __init__(self) -> None:
        self.reply = "APPROPRIATE"
        self.error: Exception | None = None
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    def fail_with(self, message: str = "provider down") -> None:
        self.error = GenerationError(message)


@pytest_asyncio.fixture(autouse=True)
async def prepare_database() -> None:
    """Create the database schema before each test and drop it afterwards."""

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.drop_all)
    await engine.dispose()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest_asyncio.fixture
async def mailer() -> StubMailer:
    stub = StubMailer()
    app.dependency_overrides[get_mailer] = lambda: stub
    yield stub
    app.dependency_overrides.pop(get_mailer, None)


@pytest_asyncio.fixture
async def generator() -> StubGenerator:
    stub = StubGenerator()
    app.dependency_overrides[get_text_generator] = lambda: stub
    yield stub
    app.dependency_overrides.pop(get_text_generator, None)


@pytest_asyncio.fixture
async def client(mailer: StubMailer, generator: StubGenerator) -> AsyncClient:
    """Provide an HTTP client for integration tests."""

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


async def register_verified(
    client: AsyncClient,
    mailer: StubMailer,
    username: str,
    password: str = "secret123",
) -> dict[str, str]:
    """Sign up, verify and sign in; return the Authorization header."""

    email = f"{username}@example.com"
    response = await client.post(
        "/sign-up", json={"username": username, "email": email, "password": password}
    )
    assert response.status_code == 201, response.text

    response = await client.post(
        "/verify-code", json={"username": username, "code": mailer.last_code(username)}
    )
    assert response.status_code == 200, response.text

    response = await client.post("/sign-in", json={"identifier": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def verified_user(client: AsyncClient, mailer: StubMailer):
    """Factory fixture: ``headers = await verified_user("alice")``."""

    async def _register(username: str, password: str = "secret123") -> dict[str, str]:
        return await register_verified(client, mailer, username, password)

    return _register
