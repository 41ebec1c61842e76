"""Storefront catalog: listing, search, detail and vector recommendations."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from budtender.embeddings import EmbeddingUnavailableError
from budtender.retriever import similar_to_strain, retrieve_similar_strains
from greenleaf.api.deps import get_db
from greenleaf.core.exceptions import BusinessError
from greenleaf.models.strain import StrainType
from greenleaf.schemas.strain import StrainOut, StrainPage, StrainMatch
from greenleaf.services import catalog_service

router = APIRouter()


@router.get("", response_model=StrainPage)
def list_strains(
    type: Optional[StrainType] = Query(None),
    effects: Optional[List[str]] = Query(None),
    min_thc: Optional[float] = Query(None, ge=0, le=100),
    max_thc: Optional[float] = Query(None, ge=0, le=100),
    search: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    cursor: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    strains, next_cursor = catalog_service.list_strains(
        db,
        strain_type=type.value if type else None,
        effects=effects,
        min_thc=min_thc,
        max_thc=max_thc,
        search=search,
        limit=limit,
        cursor=cursor,
    )
    return {"strains": strains, "next_cursor": next_cursor}


@router.get("/featured", response_model=List[StrainOut])
def featured_strains(db: Session = Depends(get_db)):
    """Up to six in-stock strains, most potent first."""
    return catalog_service.featured_strains(db)


@router.get("/search", response_model=List[StrainOut])
def search_strains(
    query: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db),
):
    return catalog_service.search_strains(db, query, limit)


@router.get("/effects", response_model=List[str])
def list_effects(db: Session = Depends(get_db)):
    return catalog_service.all_effects(db)


@router.get("/flavors", response_model=List[str])
def list_flavors(db: Session = Depends(get_db)):
    return catalog_service.all_flavors(db)


@router.get("/recommend", response_model=List[StrainMatch])
def recommend_strains(
    query: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db),
):
    """Free-text ("something relaxing for sleep") nearest-neighbour lookup."""
    try:
        return retrieve_similar_strains(db, query, limit)
    except EmbeddingUnavailableError as e:
        raise BusinessError.bad_gateway("Recommendation service", e)


@router.get("/{strain_id}/similar", response_model=List[StrainMatch])
def similar_strains(
    strain_id: int,
    limit: int = Query(4, ge=1, le=10),
    db: Session = Depends(get_db),
):
    return similar_to_strain(db, strain_id, limit)


@router.get("/{slug}", response_model=StrainOut)
def get_strain(slug: str, db: Session = Depends(get_db)):
    strain = catalog_service.get_by_slug(db, slug)
    if not strain:
        raise BusinessError.not_found("Strain", reason=f"slug={slug}")
    return strain
