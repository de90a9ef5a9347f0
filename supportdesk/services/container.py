"""Wiring of engine, repositories, tools and services for one process."""

from sqlalchemy import Engine

from supportdesk.clients.base import LLMProvider
from supportdesk.config import Settings
from supportdesk.db.database import create_db_engine, init_db
from supportdesk.db.repositories import Repositories
from supportdesk.services.auth import AuthService
from supportdesk.services.chat import ChatService
from supportdesk.services.llm import LLMService
from supportdesk.services.owner import OwnerService
from supportdesk.services.public_chat import PublicChatService
from supportdesk.services.rate_limiter import RateLimiter
from supportdesk.services.visitor import VisitorService
from supportdesk.tools.registry import ToolsRegistry, create_default_registry
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_TENANT_SLUG = "demo"
DEMO_OWNER_EMAIL = "demo@techhub.store"
DEMO_TENANT_SETTINGS = {
    "welcomeMessage": "Welcome to TechHub Store! How can we help you today?",
    "businessHours": "Mon-Fri 9am-6pm EST",
}


class ServiceContainer:
    """Holds every long-lived collaborator; built once per application."""

    def __init__(
        self,
        settings: Settings,
        provider: LLMProvider,
        engine: Engine | None = None,
        registry: ToolsRegistry | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self.settings = settings
        self.engine = engine or create_db_engine(settings.database_url)
        self.repositories = Repositories.from_engine(self.engine)
        self.registry = registry or create_default_registry()
        self.rate_limiter = rate_limiter or RateLimiter(settings.rate_limit_storage_uri)

        self.llm_service = LLMService(provider, self.registry, max_tool_iterations=settings.max_tool_iterations)
        self.auth = AuthService(
            self.repositories,
            jwt_secret=settings.jwt_secret,
            jwt_expires_days=settings.jwt_expires_days,
            bcrypt_rounds=settings.bcrypt_rounds,
        )
        self.chat = ChatService(self.repositories, self.llm_service)
        self.public_chat = PublicChatService(
            self.repositories,
            self.llm_service,
            self.rate_limiter,
            rate_limit=settings.chat_rate_limit,
            rate_window_ms=settings.chat_rate_window_ms,
        )
        self.owner = OwnerService(self.repositories)
        self.visitor = VisitorService(self.repositories)

    def init_schema(self) -> None:
        """Create tables and the demo tenant if they are missing."""
        init_db(self.engine)
        self.seed_demo_tenant()

    def seed_demo_tenant(self) -> None:
        if self.repositories.tenants.find_by_slug(DEMO_TENANT_SLUG):
            return

        owner = self.repositories.users.find_by_email(DEMO_OWNER_EMAIL)
        if owner is None:
            owner = self.repositories.users.create(
                email=DEMO_OWNER_EMAIL,
                password_hash=None,
                name="Demo Owner",
                role="owner",
                auth_provider="system",
            )
        self.repositories.tenants.create(
            owner_id=owner.id,
            name="TechHub Store",
            slug=DEMO_TENANT_SLUG,
            settings=DEMO_TENANT_SETTINGS,
        )
        logger.info(f"Seeded demo tenant '{DEMO_TENANT_SLUG}'")

    def close(self) -> None:
        self.engine.dispose()
