"""DocPanel API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map DocPanelError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - One SessionStreamController per process, built in lifespan and shut
      down (all streams cancelled) before the Anthropic clients close

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Collaborators wired here only; services never construct them
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docpanel.api.error_handlers import register_error_handlers
from docpanel.api.routes import agent_panel, health
from docpanel.config import get_settings
from docpanel.infrastructure.anthropic_client import AnthropicClientPool
from docpanel.infrastructure.credentials import SettingsCredentialProvider
from docpanel.infrastructure.memory_tool_backend import InMemoryToolBackend
from docpanel.infrastructure.observability import setup_logging
from docpanel.infrastructure.pdf_content_source import PdfFileContentSource
from docpanel.services.context_cache import ContextCache
from docpanel.services.stream_controller import SessionStreamController

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    pool = AnthropicClientPool(settings.anthropic_timeout_seconds)
    controller = SessionStreamController(
        credentials=SettingsCredentialProvider(settings),
        cache=ContextCache(PdfFileContentSource()),
        tool_backend=InMemoryToolBackend(),
        client_factory=pool.get,
        settings=settings,
    )
    app.state.controller = controller
    logger.info("DocPanel API started")
    yield
    logger.info("DocPanel API shutting down")
    await controller.shutdown()
    await pool.aclose()


app = FastAPI(title="DocPanel API", version="0.1.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(agent_panel.router)

register_error_handlers(app)
