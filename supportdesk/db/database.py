"""Engine construction and schema bootstrap."""

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.pool import StaticPool

from supportdesk.db.schema import metadata
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``.

    SQLite connections may be shared across threads; an in-memory SQLite
    database is pinned to a single connection so every request sees it.
    """
    if database_url.startswith("sqlite"):
        in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
        engine_kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if in_memory:
            engine_kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=False, **engine_kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(database_url, echo=False, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    """Create missing tables; existing tables are left untouched."""
    metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database schema ready")
