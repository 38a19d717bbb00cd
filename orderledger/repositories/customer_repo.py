from typing import List, Optional, Set
from sqlalchemy.orm import Session
from sqlalchemy import and_, desc

from ..models.customer import Customer
from .base import CRUDBase


class CustomerRepository(CRUDBase[Customer]):
    def __init__(self):
        super().__init__(Customer)

    def get_by_phone(self, db: Session, user_id: str, scope: str, phone_normalized: str) -> Optional[Customer]:
        """Get a customer by normalized phone digits"""
        return (
            db.query(self.model)
            .filter(and_(
                self.model.user_id == user_id,
                self.model.scope == scope,
                self.model.phone_normalized == phone_normalized,
            ))
            .first()
        )

    def get_recent(self, db: Session, user_id: str, scope: str) -> List[Customer]:
        """Customers of a tenant scope, most recently used first"""
        return (
            db.query(self.model)
            .filter(and_(self.model.user_id == user_id, self.model.scope == scope))
            .order_by(desc(self.model.last_used_at), desc(self.model.id))
            .all()
        )

    def get_known_phones(self, db: Session, user_id: str, scope: str) -> Set[str]:
        rows = (
            db.query(self.model.phone_normalized)
            .filter(and_(self.model.user_id == user_id, self.model.scope == scope))
            .all()
        )
        return {row[0] for row in rows}
