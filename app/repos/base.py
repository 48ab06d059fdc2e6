# app/repos/base.py
from functools import wraps
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import StoreFailure
from app.utils.logging import get_logger

logger = get_logger(__name__)


def store_call(fn):
    """Kazdy blad SQLAlchemy -> rollback + StoreFailure."""

    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Store error in {type(self).__name__}.{fn.__name__}: {e}")
            self.db.rollback()
            raise StoreFailure(
                "Blad bazy danych",
                details={"operation": fn.__name__, "error": str(e)},
            ) from e

    return wrapper


class StoreRepo:
    """
    Prosty CRUD nad jedna tabela:
    find_by_id, find (filtr rownosciowy), create, update_by_id (czesciowy), delete_by_id
    kazda operacja to osobny commit, brak transakcji miedzy dokumentami
    """

    model = None
    order_by = ("created_at", "id")

    def __init__(self, db: Session):
        self.db = db

    @store_call
    def find_by_id(self, obj_id: str):
        return self.db.get(self.model, obj_id)

    @store_call
    def find(self, **filters) -> List[Any]:
        stmt = select(self.model).filter_by(**filters)
        stmt = stmt.order_by(*(getattr(self.model, c) for c in self.order_by))
        return list(self.db.execute(stmt).scalars().all())

    @store_call
    def create(self, doc: Dict[str, Any]):
        obj = self.model(**doc)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    @store_call
    def update_by_id(self, obj_id: str, partial: Dict[str, Any]):
        obj = self.db.get(self.model, obj_id)
        if obj is None:
            return None
        for field, value in partial.items():
            setattr(obj, field, value)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    @store_call
    def delete_by_id(self, obj_id: str) -> bool:
        obj = self.db.get(self.model, obj_id)
        if obj is None:
            return False
        self.db.delete(obj)
        self.db.commit()
        return True
