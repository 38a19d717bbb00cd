"""
Base SQLAlchemy model with common fields and utilities.
"""
from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.sql import func

from ..config.database import Base


class BaseModel(Base):
    """
    Abstract base model with the id and timestamp columns shared by ledger tables.
    Records are hard-deleted; there is no soft delete column.
    """
    __abstract__ = True

    # Primary key
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"

