from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from .config import settings


def _normalized_database_url(raw_url: str) -> str:
    """
    postgres:// and driverless postgresql:// URLs are rewritten to the psycopg3 dialect.
    Everything else (SQLite etc.) is returned as is.
    """
    if not raw_url:
        return "sqlite:///./medichat.db"
    raw_url = raw_url.strip()
    if raw_url.startswith("postgres://"):
        return "postgresql+psycopg://" + raw_url[len("postgres://") :]
    if raw_url.startswith("postgresql://") and "+psycopg" not in raw_url.split("://", 1)[0]:
        return "postgresql+psycopg://" + raw_url[len("postgresql://") :]
    return raw_url


DATABASE_URL = _normalized_database_url(settings.database_url)

# In-memory SQLite: share one connection so tables created by init_db are visible everywhere (tests)
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
_use_static_pool = DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL
engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    poolclass=StaticPool if _use_static_pool else None,
)


def init_db():
    # Model modules must be imported so their tables are registered on the metadata.
    from medichat import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
