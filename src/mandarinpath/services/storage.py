"""Persistent key/value storage for session data."""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mandarinpath.models.models import StorageItem

logger = logging.getLogger(__name__)


class LocalStorage:
    """Key/value store that survives restarts, used to keep auth tokens."""

    def __init__(self, db: Session):
        """Initialize the storage with a database session."""
        self.db = db

    def _get(self, key: str) -> Optional[StorageItem]:
        return self.db.query(StorageItem).filter(StorageItem.key == key).first()

    def get_item(self, key: str) -> Optional[str]:
        """Get the value stored under key, or None."""
        item = self._get(key)
        return item.value if item else None

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        item = self._get(key)
        if item:
            item.value = value
        else:
            self.db.add(StorageItem(key=key, value=value))
        self._commit(f"store {key}")

    def remove_item(self, key: str) -> None:
        """Remove key if present."""
        item = self._get(key)
        if not item:
            return
        self.db.delete(item)
        self._commit(f"remove {key}")

    def clear(self) -> None:
        """Remove every stored key."""
        count = self.db.query(StorageItem).delete()
        self._commit("clear storage")
        logger.debug(f"Cleared {count} storage items")

    def keys(self) -> list[str]:
        return [item.key for item in self.db.query(StorageItem).order_by(StorageItem.key).all()]

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise
