"""API test fixtures — FastAPI app over ASGITransport with test resources on app.state.

Invariants:
    - app.state.db / app.state.token_verifier point at the test engine and fake IdP,
      so the real get_db / require_identity dependencies run
    - State and dependency overrides are restored after every test
"""

import pytest
from httpx import ASGITransport, AsyncClient

from weight_api.main import app


@pytest.fixture
async def client(db_manager, token_verifier):
    """HTTP client bound to the app; lifespan is not run (resources injected)."""
    app.state.db = db_manager
    app.state.token_verifier = token_verifier

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    del app.state.db
    del app.state.token_verifier
