"""Database session. PostgreSQL + pgvector in production, SQLite for local dev."""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from greenleaf.core.config import settings

connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)


def enable_sqlite_foreign_keys(engine):
    """SQLite ignores ON DELETE CASCADE / SET NULL unless asked per connection."""

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite: NullPool for thread-safety
    from sqlalchemy.pool import NullPool
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args,
        poolclass=NullPool
    )
    enable_sqlite_foreign_keys(engine)
else:
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def is_postgres(bind) -> bool:
    """True when `bind` (engine, connection or session) talks to PostgreSQL."""
    if hasattr(bind, "get_bind"):
        bind = bind.get_bind()
    return bind.dialect.name == "postgresql"
