"""
Admin back-office: dashboard stats, strain CRUD, inventory and orders.

Every route requires the Clerk "admin" role and every mutation is audit
logged with the acting user id.
"""
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func
from sqlalchemy.orm import Session

from greenleaf.api.deps import get_db, require_admin
from greenleaf.core.audit import AuditLog
from greenleaf.core.config import settings
from greenleaf.core.exceptions import BusinessError
from greenleaf.core.log_config import admin_logger as logger
from greenleaf.models.inventory import Inventory
from greenleaf.models.order import Order, OrderStatus, COMPLETED_STATUSES
from greenleaf.models.strain import Strain, StrainType
from greenleaf.schemas.admin import (
    DashboardStats,
    AdminStrainPage,
    InventoryUpsert,
    InventoryRow,
    BulkInventoryResult,
    AdminOrderPage,
    OrderStatusUpdate,
)
from greenleaf.schemas.order import OrderOut
from greenleaf.schemas.strain import StrainOut, StrainCreate, StrainUpdate
from greenleaf.services import catalog_service, inventory_service, order_service

router = APIRouter(dependencies=[Depends(require_admin)])


def _pages(total: int, per_page: int) -> int:
    return math.ceil(total / per_page) if total else 0


@router.get("/stats", response_model=DashboardStats)
def get_stats(db: Session = Depends(get_db)):
    total_strains = db.query(func.count(Strain.id)).scalar() or 0
    total_inventory = db.query(func.sum(Inventory.quantity)).scalar() or 0
    total_orders = db.query(func.count(Order.id)).scalar() or 0

    # Pending checkouts and cancelled orders never brought money in
    total_revenue = db.query(func.sum(Order.total_cents)).filter(
        Order.status.in_(COMPLETED_STATUSES)
    ).scalar() or 0

    low_stock_count = db.query(func.count(Inventory.id)).filter(
        Inventory.quantity < settings.LOW_STOCK_THRESHOLD
    ).scalar() or 0

    return {
        "total_strains": total_strains,
        "total_inventory": int(total_inventory),
        "total_orders": total_orders,
        "total_revenue": int(total_revenue),
        "low_stock_count": low_stock_count,
    }


# ==============================================================================
# STRAINS
# ==============================================================================

@router.get("/strains", response_model=AdminStrainPage)
def list_strains(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    type: Optional[StrainType] = Query(None),
    db: Session = Depends(get_db),
):
    strains, total = catalog_service.admin_list_strains(
        db, page=page, per_page=per_page, search=search, strain_type=type.value if type else None
    )
    return {"strains": strains, "total": total, "pages": _pages(total, per_page), "page": page}


@router.get("/strains/{strain_id}", response_model=StrainOut)
def get_strain(strain_id: int, db: Session = Depends(get_db)):
    strain = catalog_service.get_by_id(db, strain_id)
    if not strain:
        raise BusinessError.not_found("Strain")
    return strain


@router.post("/strains", response_model=StrainOut, status_code=201)
def create_strain(payload: StrainCreate, db: Session = Depends(get_db), admin_id: str = Depends(require_admin)):
    if catalog_service.slug_taken(db, payload.slug):
        raise BusinessError.conflict("A strain with this slug already exists")

    strain = catalog_service.create_strain(db, payload.model_dump(mode="json"))
    AuditLog.log_action("create", "strain", strain.id, admin_id, changes={"slug": strain.slug})
    return strain


@router.patch("/strains/{strain_id}", response_model=StrainOut)
def update_strain(
    strain_id: int,
    payload: StrainUpdate,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    strain = catalog_service.get_by_id(db, strain_id)
    if not strain:
        raise BusinessError.not_found("Strain")

    changes = payload.model_dump(mode="json", exclude_unset=True)
    if "slug" in changes and catalog_service.slug_taken(db, changes["slug"], exclude_id=strain_id):
        raise BusinessError.conflict("A strain with this slug already exists")

    strain = catalog_service.update_strain(db, strain, changes)
    AuditLog.log_action("update", "strain", strain_id, admin_id, changes=changes)
    return strain


@router.delete("/strains/{strain_id}", status_code=204)
def delete_strain(strain_id: int, db: Session = Depends(get_db), admin_id: str = Depends(require_admin)):
    strain = catalog_service.get_by_id(db, strain_id)
    if not strain:
        raise BusinessError.not_found("Strain")
    catalog_service.delete_strain(db, strain)
    logger.info(f"Admin {admin_id} deleted strain {strain_id}")
    AuditLog.log_action("delete", "strain", strain_id, admin_id)
    return Response(status_code=204)


# ==============================================================================
# INVENTORY
# ==============================================================================

@router.get("/inventory", response_model=List[InventoryRow])
def list_inventory(low_stock_only: bool = Query(False), db: Session = Depends(get_db)):
    return inventory_service.list_inventory(db, low_stock_only=low_stock_only)


@router.put("/inventory", response_model=InventoryRow)
def upsert_inventory(payload: InventoryUpsert, db: Session = Depends(get_db), admin_id: str = Depends(require_admin)):
    item = inventory_service.upsert_inventory(db, payload.strain_id, payload.quantity, payload.price_per_gram)
    AuditLog.log_action(
        "update", "inventory", item.strain_id, admin_id, changes=payload.model_dump(exclude_unset=True)
    )
    return inventory_service.inventory_row(item)


@router.put("/inventory/bulk", response_model=BulkInventoryResult)
def bulk_upsert_inventory(
    payload: List[InventoryUpsert],
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    updates = [item.model_dump(exclude_unset=True) for item in payload]
    updated = inventory_service.bulk_upsert_inventory(db, updates)
    AuditLog.log_action("bulk_update", "inventory", None, admin_id, changes={"items": updates})
    return {"updated": updated}


# ==============================================================================
# ORDERS
# ==============================================================================

@router.get("/orders", response_model=AdminOrderPage)
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    orders, total = order_service.admin_list_orders(
        db, status=status.value if status else None, page=page, per_page=per_page
    )
    return {"orders": orders, "total": total, "pages": _pages(total, per_page), "page": page}


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return order_service.get_order(db, order_id)


@router.patch("/orders/{order_id}", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    order = order_service.get_order(db, order_id)
    previous = order_service.update_order_status(db, order, payload.status.value)
    logger.info(f"Admin {admin_id} moved order {order_id} from {previous} to {payload.status.value}")
    AuditLog.log_action(
        "status_change", "order", order_id, admin_id,
        changes={"from": previous, "to": payload.status.value},
    )
    return order
