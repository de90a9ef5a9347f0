"""Main FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from supportdesk import __version__
from supportdesk.api.errors import register_exception_handlers
from supportdesk.api.routes import api_router
from supportdesk.clients import create_provider
from supportdesk.clients.base import LLMProvider
from supportdesk.config import Settings
from supportdesk.services.container import ServiceContainer
from supportdesk.utils.logging import LogConfig, get_logger, setup_logging

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, provider: LLMProvider | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Runtime settings; read from the environment when omitted
        provider: LLM adapter; built from ``settings`` when omitted

    Returns:
        Configured FastAPI application. Services are created on startup.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(LogConfig(level=settings.log_level))

        llm_provider = provider
        if llm_provider is None:
            settings.validate_required()
            llm_provider = create_provider(settings)

        container = ServiceContainer(settings, llm_provider)
        if settings.create_schema:
            container.init_schema()
        app.state.container = container

        logger.info(
            f"Support desk API started ({settings.environment}, provider={settings.llm_provider}, "
            f"tools={container.registry.get_tool_names()})"
        )
        try:
            yield
        finally:
            container.close()
            logger.info("Support desk API stopped")

    app = FastAPI(
        title="Support Desk AI",
        description=(
            "Multi-tenant customer-support chat backend. Each business gets an AI assistant "
            "that answers visitors and can book appointments through tools."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Public chat", "description": "Website widget chat, addressed by business slug."},
            {"name": "Auth", "description": "Owner and customer registration and login."},
            {"name": "Owner", "description": "Conversation management for business owners."},
            {"name": "Visitor", "description": "A visitor's conversations across businesses."},
            {"name": "Internal chat", "description": "Tenant-less chat for trying out the assistant."},
            {"name": "Health", "description": "Service health monitoring."},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    env = Settings.from_env()
    uvicorn.run("supportdesk.main:app", host=env.host, port=env.port, log_level=env.log_level.lower())
