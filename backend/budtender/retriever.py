"""
Strain retrieval for recommendations and the budtender chat.

Nearest-neighbour search runs in the database on PostgreSQL (pgvector's `<=>`
cosine distance operator, served by the ivfflat index). Other dialects only
store the vectors, so the same ranking is computed in process with numpy; the
catalog is small enough for a full scan.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from sqlalchemy.orm import Session

from budtender.embeddings import get_embedding_client
from greenleaf.db.session import is_postgres
from greenleaf.models.inventory import Inventory
from greenleaf.models.strain import Strain

logger = logging.getLogger(__name__)

MAX_SIMILAR = 10


@dataclass
class StrainResult:
    id: int
    name: str
    slug: str
    type: str
    thc_percent: Optional[float]
    cbd_percent: Optional[float]
    effects: List[str] = field(default_factory=list)
    flavors: List[str] = field(default_factory=list)
    description: Optional[str] = None
    image_url: Optional[str] = None
    similarity: float = 1.0

    @classmethod
    def from_strain(cls, strain: Strain, similarity: float = 1.0) -> "StrainResult":
        return cls(
            id=strain.id,
            name=strain.name,
            slug=strain.slug,
            type=strain.type,
            thc_percent=float(strain.thc_percent) if strain.thc_percent is not None else None,
            cbd_percent=float(strain.cbd_percent) if strain.cbd_percent is not None else None,
            effects=list(strain.effects or []),
            flavors=list(strain.flavors or []),
            description=strain.description,
            image_url=strain.image_url,
            similarity=similarity,
        )


def cosine_distances(matrix: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Cosine distance (1 - cosine similarity) of every row of `matrix` to `vector`."""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(vector)
    dots = matrix @ vector
    with np.errstate(divide="ignore", invalid="ignore"):
        similarity = np.where(norms > 0, dots / norms, 0.0)
    return 1.0 - similarity


def _nearest(
    db: Session,
    vector: Sequence[float],
    limit: int,
    exclude_id: Optional[int] = None,
) -> List[Tuple[Strain, float]]:
    """(strain, cosine distance) pairs closest to `vector`, nearest first."""
    if is_postgres(db):
        distance = Strain.embedding.cosine_distance(vector).label("distance")
        query = db.query(Strain, distance).filter(Strain.embedding.isnot(None))
        if exclude_id is not None:
            query = query.filter(Strain.id != exclude_id)
        rows = query.order_by(distance).limit(limit).all()
        return [(strain, float(d)) for strain, d in rows]

    query = db.query(Strain).filter(Strain.embedding.isnot(None))
    if exclude_id is not None:
        query = query.filter(Strain.id != exclude_id)
    candidates = query.all()
    if not candidates:
        return []

    matrix = np.vstack([np.asarray(s.embedding, dtype=np.float64) for s in candidates])
    distances = cosine_distances(matrix, np.asarray(vector, dtype=np.float64))
    order = np.argsort(distances, kind="stable")[:limit]
    return [(candidates[i], float(distances[i])) for i in order]


def similar_to_strain(db: Session, strain_id: int, limit: int = 4) -> List[StrainResult]:
    """
    Strains closest to `strain_id` in embedding space, excluding itself.

    Returns an empty list when the strain is unknown or not embedded yet.
    """
    limit = max(1, min(limit, MAX_SIMILAR))
    target = db.get(Strain, strain_id)
    if target is None or target.embedding is None:
        logger.debug(f"No embedding for strain {strain_id}; no similar strains")
        return []

    return [
        StrainResult.from_strain(strain, similarity=1.0 - distance)
        for strain, distance in _nearest(db, target.embedding, limit, exclude_id=strain_id)
    ]


def retrieve_similar_strains(db: Session, query: str, limit: int = 5) -> List[StrainResult]:
    """Embed free text and return the closest strains, best match first."""
    vector = get_embedding_client().embed_query(query)
    results = [
        StrainResult.from_strain(strain, similarity=1.0 - distance)
        for strain, distance in _nearest(db, vector, limit)
    ]
    logger.debug(f"Retrieved {len(results)} strains for query ({len(query)} chars)")
    return results


def _in_stock_by_potency(db: Session):
    return (
        db.query(Strain)
        .join(Inventory, Inventory.strain_id == Strain.id)
        .filter(Inventory.quantity > 0)
        .order_by(Strain.thc_percent.desc().nulls_last(), Strain.name)
    )


def retrieve_strains_by_effects(db: Session, effects: Sequence[str], limit: int = 5) -> List[StrainResult]:
    """In-stock strains having any of `effects` (case-insensitive), strongest first."""
    wanted = {e.strip().lower() for e in effects if e.strip()}
    if not wanted:
        return []

    results = []
    for strain in _in_stock_by_potency(db):
        if wanted.intersection(e.lower() for e in (strain.effects or [])):
            results.append(StrainResult.from_strain(strain))
            if len(results) >= limit:
                break
    return results


def retrieve_strains_by_type(db: Session, strain_type: str, limit: int = 5) -> List[StrainResult]:
    strains = _in_stock_by_potency(db).filter(Strain.type == strain_type.upper()).limit(limit).all()
    return [StrainResult.from_strain(s) for s in strains]


def format_strains_for_context(strains: Sequence[StrainResult]) -> str:
    """Render strains as a numbered markdown list for the LLM prompt."""
    blocks = []
    for index, strain in enumerate(strains, start=1):
        thc = f"{strain.thc_percent:g}%" if strain.thc_percent is not None else "N/A"
        blocks.append(
            f"{index}. **{strain.name}** ({strain.type})\n"
            f"   - THC: {thc}\n"
            f"   - Effects: {', '.join(strain.effects)}\n"
            f"   - Flavors: {', '.join(strain.flavors)}\n"
            f"   - {strain.description or 'No description available'}"
        )
    return "\n\n".join(blocks)
