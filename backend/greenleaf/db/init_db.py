"""Create all tables. Run on app startup.

On PostgreSQL the pgvector extension is enabled first so the
`strains.embedding` column can be created.
"""
import logging

from sqlalchemy import text

from greenleaf.db.base import Base
from greenleaf.db.session import engine, is_postgres
from greenleaf.models import strain, inventory, cart, order  # noqa: F401 - register models

logger = logging.getLogger(__name__)

EMBEDDING_INDEX_NAME = "strain_embedding_idx"


def init_db(bind=None):
    bind = bind or engine
    if is_postgres(bind):
        with bind.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database initialized ({bind.dialect.name})")


def create_embedding_index(bind=None, lists: int = 100) -> bool:
    """
    Build the ivfflat cosine index over strain embeddings.

    ivfflat picks its list centroids from the rows present at build time, so
    this runs after embeddings are generated. No-op outside PostgreSQL.
    """
    bind = bind or engine
    if not is_postgres(bind):
        logger.info("Skipping vector index: not a PostgreSQL database")
        return False

    with bind.begin() as conn:
        conn.execute(text(
            f"CREATE INDEX IF NOT EXISTS {EMBEDDING_INDEX_NAME} ON strains "
            f"USING ivfflat (embedding vector_cosine_ops) WITH (lists = {int(lists)})"
        ))
    logger.info(f"Vector index {EMBEDDING_INDEX_NAME} ready (lists={lists})")
    return True
