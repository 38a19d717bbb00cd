from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from ..models.shipping import ShippingAccount
from .base import CRUDBase


class ShippingAccountRepository(CRUDBase[ShippingAccount]):
    def __init__(self):
        super().__init__(ShippingAccount)

    def get_scoped(self, db: Session, user_id: str, scope: str) -> List[ShippingAccount]:
        """Get every registered account of a tenant scope"""
        return (
            db.query(self.model)
            .filter(and_(self.model.user_id == user_id, self.model.scope == scope))
            .order_by(self.model.id)
            .all()
        )

    def get_by_key(self, db: Session, user_id: str, scope: str, value_normalized: str) -> Optional[ShippingAccount]:
        """Get the account registered under a normalized owner key"""
        return (
            db.query(self.model)
            .filter(and_(
                self.model.user_id == user_id,
                self.model.scope == scope,
                self.model.value_normalized == value_normalized,
            ))
            .first()
        )
