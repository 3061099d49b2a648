"""Database models for the client."""
from sqlalchemy import Column, Integer, String, Text

from mandarinpath.models.base import Base, TimestampMixin


class StorageItem(Base, TimestampMixin):
    """Key/value pair persisted across runs, like browser local storage."""

    __tablename__ = "storage_items"

    id = Column(Integer, primary_key=True)
    key = Column(String, unique=True, index=True, nullable=False)
    value = Column(Text, nullable=False)
