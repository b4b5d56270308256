"""Service test fixtures — controller wiring and HTTP client.

Invariants:
    - Every test gets a fresh controller, cache, backend and registry
    - The model is always a MockAnthropicClient; no network access

Design Decisions:
    - Mock at the collaborator boundary (credentials, content source, client
      factory), real services everywhere else
    - get_controller dependency overridden for route tests (no lifespan needed)
"""

import pytest
from httpx import ASGITransport, AsyncClient

from docpanel.api.routes.agent_panel import get_controller
from docpanel.config import Settings
from docpanel.core.collaborator_protocols import Credential
from docpanel.infrastructure.memory_tool_backend import InMemoryToolBackend
from docpanel.main import app
from docpanel.services.context_cache import ContextCache
from docpanel.services.stream_controller import SessionStreamController

from tests.services.fakes import (
    SAMPLE_PAGES, ClientFactorySpy, FakeContentSource, FakeCredentialProvider,
    make_pages,
)


@pytest.fixture
def settings():
    return Settings(
        anthropic_api_key="sk-ant-test-fake-key",
        agent_model="claude-test",
        agent_max_tokens=1024,
        agent_max_steps=4,
    )


@pytest.fixture
def credentials():
    return FakeCredentialProvider(Credential("anthropic", api_key="sk-ant-test"))


@pytest.fixture
def content_source():
    return FakeContentSource({
        "/docs/atlas.pdf": SAMPLE_PAGES,
        "/docs/other.pdf": make_pages("Another document about tides."),
    })


@pytest.fixture
def cache(content_source):
    return ContextCache(content_source)


@pytest.fixture
def backend():
    return InMemoryToolBackend()


@pytest.fixture
def client_factory():
    return ClientFactorySpy()


@pytest.fixture
def controller(settings, credentials, cache, backend, client_factory):
    return SessionStreamController(
        credentials=credentials,
        cache=cache,
        tool_backend=backend,
        client_factory=client_factory,
        settings=settings,
    )


@pytest.fixture
async def client(controller):
    """FastAPI test client wired to the test controller."""
    app.dependency_overrides[get_controller] = lambda: controller
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()
    await controller.shutdown()
