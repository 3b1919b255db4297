"""API-test fixtures.

The routers' module-level services are swapped for ones built on the shared
in-memory repositories and get_db_session yields the mock session, so the full
FastAPI stack (auth, middleware, error envelope) runs without PostgreSQL.
"""

from collections.abc import Callable

import pytest

from src.bm_admin.api import router as admin_router
from src.bm_common.database import get_db_session
from src.bm_gateway.auth.jwt_handler import create_access_token
from src.bm_market.api import router as market_router
from src.bm_settlement.api import router as settlement_router
from src.main import app


@pytest.fixture
def wired(monkeypatch, registry, settlement, admin, db):
    monkeypatch.setattr(market_router, "_registry", registry)
    monkeypatch.setattr(settlement_router, "_engine", settlement)
    monkeypatch.setattr(admin_router, "_service", admin)

    async def _session():
        yield db

    app.dependency_overrides[get_db_session] = _session
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def auth() -> Callable[[str], dict[str, str]]:
    def _headers(identity: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(identity)}"}

    return _headers
