from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import get_current_user
from ....core.security import AuthContext
from ....schemas.customer import CustomerListResponse, CustomerOut, CustomerSyncResult
from ....services.customer_service import CustomerService

router = APIRouter()


@router.get("/", response_model=CustomerListResponse)
def get_customers(
    scope: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """
    Customer autocomplete.
    Matches every search token against name and address, or the digits against the phone.
    """
    customers = CustomerService(db).list_customers(current_user.tenant_id, scope, search, limit)
    return {"items": [CustomerOut.model_validate(customer) for customer in customers]}


@router.post("/sync", response_model=CustomerSyncResult)
def sync_customers(
    scope: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Backfill customers from existing orders"""
    created = CustomerService(db).sync_from_orders(current_user.tenant_id, scope)
    return {"created": created}
