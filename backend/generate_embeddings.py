"""Generate strain embeddings and build the vector index.

    python generate_embeddings.py [--only-missing] [--skip-index]

One OpenAI call per strain, throttled by EMBEDDING_THROTTLE_SECONDS. A failure
on one strain is logged and counted; the job carries on with the rest.
"""
import argparse
import logging
import time
from dataclasses import dataclass
from typing import Optional

from openai import OpenAIError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budtender.embeddings import EmbeddingClient, create_strain_text, get_embedding_client
from greenleaf.core.config import settings
from greenleaf.core.log_config import configure_logging
from greenleaf.db.init_db import create_embedding_index, init_db
from greenleaf.db.session import SessionLocal
from greenleaf.models.strain import Strain

logger = logging.getLogger("greenleaf.embeddings")


@dataclass
class EmbeddingRun:
    total: int = 0
    processed: int = 0
    failed: int = 0


def generate_embeddings(
    db: Session,
    client: Optional[EmbeddingClient] = None,
    only_missing: bool = False,
    throttle_seconds: Optional[float] = None,
) -> EmbeddingRun:
    client = client or get_embedding_client()
    throttle = settings.EMBEDDING_THROTTLE_SECONDS if throttle_seconds is None else throttle_seconds

    query = db.query(Strain).order_by(Strain.id)
    if only_missing:
        query = query.filter(Strain.embedding.is_(None))
    strains = query.all()

    run = EmbeddingRun(total=len(strains))
    logger.info(f"Generating embeddings for {run.total} strains")

    for strain in strains:
        try:
            strain.embedding = client.embed_query(create_strain_text(strain))
            db.commit()
            run.processed += 1
            logger.info(f"[{run.processed}/{run.total}] Embedded {strain.name}")
        except (OpenAIError, SQLAlchemyError, ValueError) as e:
            db.rollback()
            run.failed += 1
            logger.error(f"Embedding failed for {strain.name}: {e}")
        if throttle:
            time.sleep(throttle)

    logger.info(f"Embedding generation complete: processed={run.processed} failed={run.failed}")
    return run


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--only-missing", action="store_true", help="embed only strains without a vector")
    parser.add_argument("--skip-index", action="store_true", help="do not (re)create the ivfflat index")
    args = parser.parse_args()

    configure_logging()
    init_db()

    db = SessionLocal()
    try:
        run = generate_embeddings(db, only_missing=args.only_missing)
    finally:
        db.close()

    if not args.skip_index:
        create_embedding_index()

    print(f"Processed: {run.processed}  Failed: {run.failed}")
    return 0 if run.failed == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
