"""Shared test fixtures."""

import os

# Settings are read at import time; tests sign their own tokens
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from config.settings import settings  # noqa: E402
from src.main import app  # noqa: E402
from src.rb_common.fixed_point import to_wad  # noqa: E402
from src.rb_engine.application.service import EngineServices, get_engine_services  # noqa: E402
from src.rb_engine.engine.manager import MarketManager  # noqa: E402
from src.rb_gateway.auth.jwt_handler import create_access_token  # noqa: E402

STARTING_BALANCE = to_wad(1_000)


def bearer(account_id: str) -> dict[str, str]:
    """Authorization header carrying a freshly signed access token."""
    return {"Authorization": f"Bearer {create_access_token(account_id)}"}


@pytest.fixture
def services() -> EngineServices:
    """Fresh engine, ledger, vault and event log per test."""
    return EngineServices()


@pytest.fixture
def manager(services: EngineServices) -> MarketManager:
    return services.manager


@pytest.fixture
async def alice(services: EngineServices) -> str:
    await services.vault.mint("alice", STARTING_BALANCE)
    return "alice"


@pytest.fixture
async def bob(services: EngineServices) -> str:
    await services.vault.mint("bob", STARTING_BALANCE)
    return "bob"


@pytest.fixture
async def market_id(manager: MarketManager) -> int:
    """Bins -120, -60, 0, 60, 120."""
    return await manager.create_market(60, -120, 120, 2_000_000_000)


@pytest.fixture
async def client(services: EngineServices) -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints against a fresh engine."""
    app.dependency_overrides[get_engine_services] = lambda: services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def operator_headers() -> dict[str, str]:
    return bearer(settings.OPERATOR_ACCOUNT_ID)

