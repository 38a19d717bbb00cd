from typing import Any, Dict, Generic, List, Type, TypeVar
from sqlalchemy.orm import Session
import math

ModelType = TypeVar("ModelType")


def paginate(items: List[Any], page: int, page_size: int) -> Dict[str, Any]:
    """Slice an already filtered and ordered list into one page."""
    total = len(items)
    offset = (page - 1) * page_size
    return {
        "items": items[offset:offset + page_size],
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total": total,
            "total_pages": max(math.ceil(total / page_size), 1),
        },
    }


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        """
        Repository object with default methods to Create, Read, Update, Delete.

        Methods only add/flush; committing belongs to the calling service so
        one operation maps to one transaction.
        """
        self.model = model

    def create(self, db: Session, *, obj_in: Dict[str, Any]) -> ModelType:
        """Create a new record"""
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        db.flush()
        return db_obj

    def update(self, db: Session, *, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        """Update an existing record"""
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        db.add(db_obj)
        db.flush()
        return db_obj

    def delete(self, db: Session, *, db_obj: ModelType) -> ModelType:
        """Delete a record"""
        db.delete(db_obj)
        db.flush()
        return db_obj
