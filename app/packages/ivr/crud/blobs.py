"""键值数据块 CRUD。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.ivr.crud.base import CRUDBase
from app.packages.ivr.models.blob import KeyValueBlob


class CRUDBlob(CRUDBase[KeyValueBlob]):
    def read(self, db: Session, key: str) -> Optional[str]:
        row = self.get(db, key)
        return None if row is None else row.value

    def upsert(self, db: Session, key: str, value: str) -> KeyValueBlob:
        row = self.get(db, key)
        if row is None:
            row = KeyValueBlob(key=key, value=value)
        else:
            row.value = value
        return self.save(db, row)

    def remove(self, db: Session, key: str) -> None:
        row = self.get(db, key)
        if row is not None:
            self.hard_delete(db, row)


blob_crud = CRUDBlob(KeyValueBlob)
