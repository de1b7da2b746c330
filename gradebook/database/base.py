"""
Declarative base and shared columns for every ORM model.
"""
from uuid import uuid4

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base

from ..core.constants import utc_now

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid4())


class BaseModel:
    """
    Mixin with the columns every table carries.

    - id: string UUID primary key
    - created_at / updated_at: UTC timestamps maintained by SQLAlchemy
    """

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id}>"
