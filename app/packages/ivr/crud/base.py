"""CRUD 基类：用户、活动日志与键值数据块共用的数据访问方法。"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from app.packages.ivr.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def query(self, db: Session) -> Query:
        return db.query(self.model)

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return db.get(self.model, id)

    def create(self, db: Session, values: Dict[str, Any]) -> ModelType:
        return self.save(db, self.model(**values))

    def save(self, db: Session, db_obj: ModelType) -> ModelType:
        """新增或更新一行并立即提交。"""
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def hard_delete(self, db: Session, db_obj: ModelType) -> None:
        db.delete(db_obj)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
