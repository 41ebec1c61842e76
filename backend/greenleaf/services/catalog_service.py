"""Storefront catalog reads and admin strain writes."""
import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import or_, func
from sqlalchemy.orm import Session, selectinload

from greenleaf.models.inventory import Inventory
from greenleaf.models.strain import Strain
from greenleaf.services.pricing import to_decimal

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6

# Changing any of these changes the strain's embedding text
EMBEDDED_FIELDS = {"name", "type", "thc_percent", "cbd_percent", "effects", "flavors", "description"}


def _with_inventory(db: Session):
    return db.query(Strain).options(selectinload(Strain.inventory))


def _text_match(search: str):
    pattern = f"%{search.lower()}%"
    return or_(func.lower(Strain.name).like(pattern), func.lower(Strain.description).like(pattern))


def list_strains(
    db: Session,
    strain_type: Optional[str] = None,
    effects: Optional[Sequence[str]] = None,
    min_thc: Optional[float] = None,
    max_thc: Optional[float] = None,
    search: Optional[str] = None,
    limit: int = 20,
    cursor: Optional[int] = None,
) -> Tuple[List[Strain], Optional[int]]:
    """
    Filtered catalog page ordered by name.

    `cursor` is the id of the first strain of the page (the `next_cursor`
    returned by the previous call). Returns (strains, next_cursor).
    """
    query = _with_inventory(db)
    if strain_type:
        query = query.filter(Strain.type == strain_type.upper())
    if min_thc is not None:
        query = query.filter(Strain.thc_percent >= min_thc)
    if max_thc is not None:
        query = query.filter(Strain.thc_percent <= max_thc)
    if search:
        query = query.filter(_text_match(search))

    strains = query.order_by(Strain.name, Strain.id).all()

    # effects is a JSON list; match "any of" in Python
    if effects:
        wanted = {e.lower() for e in effects}
        strains = [s for s in strains if wanted.intersection(e.lower() for e in (s.effects or []))]

    if cursor is not None:
        ids = [s.id for s in strains]
        strains = strains[ids.index(cursor):] if cursor in ids else []

    next_cursor = None
    if len(strains) > limit:
        next_cursor = strains[limit].id
        strains = strains[:limit]
    return strains, next_cursor


def featured_strains(db: Session, limit: int = FEATURED_LIMIT) -> List[Strain]:
    return (
        _with_inventory(db)
        .join(Inventory, Inventory.strain_id == Strain.id)
        .filter(Inventory.quantity > 0)
        .order_by(Strain.thc_percent.desc().nulls_last(), Strain.name)
        .limit(limit)
        .all()
    )


def search_strains(db: Session, query: str, limit: int = 5) -> List[Strain]:
    """Name/description substring, or an exact effect or flavor (case-insensitive)."""
    needle = query.strip().lower()
    if not needle:
        return []

    results = []
    for strain in _with_inventory(db).order_by(Strain.name):
        text_hit = needle in strain.name.lower() or needle in (strain.description or "").lower()
        tag_hit = needle in {t.lower() for t in (strain.effects or []) + (strain.flavors or [])}
        if text_hit or tag_hit:
            results.append(strain)
            if len(results) >= limit:
                break
    return results


def _distinct_tags(db: Session, column) -> List[str]:
    values = set()
    for (tags,) in db.query(column).all():
        values.update(tags or [])
    return sorted(values)


def all_effects(db: Session) -> List[str]:
    return _distinct_tags(db, Strain.effects)


def all_flavors(db: Session) -> List[str]:
    return _distinct_tags(db, Strain.flavors)


def get_by_slug(db: Session, slug: str) -> Optional[Strain]:
    return _with_inventory(db).filter(Strain.slug == slug).first()


def get_by_id(db: Session, strain_id: int) -> Optional[Strain]:
    return _with_inventory(db).filter(Strain.id == strain_id).first()


def slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Strain.id).filter(Strain.slug == slug)
    if exclude_id is not None:
        query = query.filter(Strain.id != exclude_id)
    return query.first() is not None


def admin_list_strains(
    db: Session,
    page: int = 1,
    per_page: int = 20,
    search: Optional[str] = None,
    strain_type: Optional[str] = None,
) -> Tuple[List[Strain], int]:
    query = db.query(Strain)
    if search:
        query = query.filter(func.lower(Strain.name).like(f"%{search.lower()}%"))
    if strain_type:
        query = query.filter(Strain.type == strain_type.upper())

    total = query.count()
    strains = (
        query.options(selectinload(Strain.inventory))
        .order_by(Strain.name, Strain.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return strains, total


def create_strain(db: Session, data: dict) -> Strain:
    """Create a strain with an empty inventory row (0 g at $0.00)."""
    strain = Strain(**data)
    strain.inventory = Inventory(quantity=0, price_per_gram=0)
    db.add(strain)
    db.commit()
    db.refresh(strain)
    logger.info(f"Strain created: {strain.slug} (id={strain.id})")
    return strain


def update_strain(db: Session, strain: Strain, changes: dict) -> Strain:
    """Apply changes. The embedding is cleared when embedded text changes."""
    stale = False
    for key, value in changes.items():
        current = getattr(strain, key)
        # Numeric columns load as Decimal, JSON payloads carry floats
        if isinstance(current, Decimal) and value is not None:
            value = to_decimal(value)
        if current != value:
            setattr(strain, key, value)
            stale = stale or key in EMBEDDED_FIELDS

    if stale and strain.embedding is not None:
        strain.embedding = None
        logger.info(f"Strain {strain.id} embedding cleared; re-run generate_embeddings.py --only-missing")

    db.commit()
    db.refresh(strain)
    return strain


def delete_strain(db: Session, strain: Strain) -> None:
    strain_id, slug = strain.id, strain.slug
    db.delete(strain)
    db.commit()
    logger.info(f"Strain deleted: {slug} (id={strain_id})")
