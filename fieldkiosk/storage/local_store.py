"""JSON key-value storage on the device database"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models_local import KeyValue

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "current_user"
LAST_BACKUP_KEY = "last_backup"
FIELD_MAPPING_KEY = "salesforce_field_mapping"


class LocalStore:
    """Small JSON value store; never raises, degrades to defaults"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        try:
            row = self.db.get(KeyValue, key)
        except SQLAlchemyError as e:
            logger.error(f"❌ Local store read failed for {key}: {e}")
            return default
        if row is None or row.value is None:
            return default
        return row.value

    def set(self, key: str, value: Any) -> bool:
        try:
            row = self.db.get(KeyValue, key)
            if row is None:
                self.db.add(KeyValue(key=key, value=value))
            else:
                row.value = value
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Local store write failed for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            row = self.db.get(KeyValue, key)
            if row is not None:
                self.db.delete(row)
                self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Local store delete failed for {key}: {e}")
            return False
