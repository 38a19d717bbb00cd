from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import get_current_user, PaginationParams
from ....core.exceptions import NotFoundError
from ....core.security import AuthContext
from ....models.order import OrderStage
from ....schemas.order import (
    OrderListFilters,
    OrderListResponse,
    OrderOut,
    OrderWrite,
    OrdersSummary,
    ReorderRequest
)
from ....services.order_service import OrderService, serialize_order

router = APIRouter()


@router.post("/", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderWrite,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Create an order"""
    order = OrderService(db).create(current_user.tenant_id, payload)
    return serialize_order(order)


@router.get("/", response_model=OrderListResponse)
def list_orders(
    scope: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    stage: List[OrderStage] = Query([]),
    returned_only: bool = Query(False),
    unreturned_only: bool = Query(False),
    pickup_only: bool = Query(False),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """
    List orders in manual order.
    Totals cover every order matching the filters, not only the returned page.
    """
    filters = OrderListFilters(
        scope=scope,
        search=search,
        stages=stage,
        returned_only=returned_only,
        unreturned_only=unreturned_only,
        pickup_only=pickup_only,
        date_from=date_from,
        date_to=date_to,
    )
    return OrderService(db).list(
        current_user.tenant_id, filters, page=pagination.page, page_size=pagination.page_size
    )


@router.get("/summary", response_model=OrdersSummary)
def get_summary(
    scope: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Totals across all paid orders of a scope"""
    return OrderService(db).summary(current_user.tenant_id, scope)


@router.get("/by-product/{product_id}", response_model=List[OrderOut])
def get_orders_by_product(
    product_id: int,
    scope: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Orders that sold a product"""
    return OrderService(db).by_product(current_user.tenant_id, product_id, scope)


@router.post("/reorder", status_code=status.HTTP_204_NO_CONTENT)
def reorder_orders(
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Persist a manual ordering; the first id ends up on top"""
    OrderService(db).reorder(current_user.tenant_id, payload.ids, base=payload.base, scope=payload.scope)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    scope: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Get an order with resolved items"""
    order = OrderService(db).get(current_user.tenant_id, order_id, scope)
    if order is None:
        raise NotFoundError("Order", order_id)
    return order


@router.put("/{order_id}", response_model=OrderOut)
def update_order(
    order_id: int,
    payload: OrderWrite,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Rewrite an order"""
    order = OrderService(db).update(current_user.tenant_id, order_id, payload)
    return serialize_order(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: int,
    scope: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Delete an order"""
    OrderService(db).remove(current_user.tenant_id, order_id, scope)
