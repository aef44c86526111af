"""Integration tests for application startup and shutdown."""

import pytest
from fastapi import FastAPI

from printbridge.core import lifespan as lifespan_module
from printbridge.services.orders.orchestrator import OrderOrchestrator


@pytest.mark.asyncio
async def test_lifespan_builds_components_and_closes_session(monkeypatch, settings):
    """Should create one session, token cache and orchestrator, then close the session."""
    monkeypatch.setattr(lifespan_module, "get_settings", lambda: settings)
    monkeypatch.setattr(lifespan_module, "setup_logging", lambda: None)
    app = FastAPI()

    async with lifespan_module.lifespan(app):
        session = app.state.http_session
        assert not session.closed
        assert isinstance(app.state.orchestrator, OrderOrchestrator)
        assert app.state.orchestrator.token_provider is app.state.token_cache

    assert session.closed
    assert app.state.http_session is None


@pytest.mark.asyncio
async def test_missing_credentials_do_not_block_startup(monkeypatch, make_settings):
    """Should start even without partner credentials so /health keeps answering."""
    settings = make_settings(PARTNER_API_KEY=None, PARTNER_OFFERING_ID=None)
    monkeypatch.setattr(lifespan_module, "get_settings", lambda: settings)
    monkeypatch.setattr(lifespan_module, "setup_logging", lambda: None)
    app = FastAPI()

    async with lifespan_module.lifespan(app):
        assert app.state.orchestrator is not None
