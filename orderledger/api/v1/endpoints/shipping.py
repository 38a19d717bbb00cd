from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import get_current_user
from ....core.security import AuthContext
from ....schemas.shipping import (
    ObracunResponse,
    ShippingAccountOut,
    ShippingAccountUpsert,
    ShippingOwnersResponse
)
from ....services.shipping_ledger import ShippingLedgerService

router = APIRouter()


@router.get("/obracun", response_model=ObracunResponse)
def get_obracun(
    scope: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """
    Settlement of paid orders per carrier account owner, merged with the
    registered starting balances
    """
    return ShippingLedgerService(db).obracun(current_user.tenant_id, scope)


@router.get("/owners", response_model=ShippingOwnersResponse)
def get_shipping_owners(
    scope: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Owner suggestions with usage counts"""
    return ShippingLedgerService(db).shipping_owners(current_user.tenant_id, scope)


@router.put("/accounts", response_model=ShippingAccountOut)
def upsert_shipping_account(
    payload: ShippingAccountUpsert,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Register a carrier account owner or overwrite its starting balance"""
    account = ShippingLedgerService(db).upsert_shipping_account(
        current_user.tenant_id, payload.value, payload.starting_amount, scope=payload.scope
    )
    return ShippingAccountOut.model_validate(account)
