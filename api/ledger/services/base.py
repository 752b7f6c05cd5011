"""Base service with read operations shared by the ledger log services."""

from typing import Generic, Type, TypeVar

from fastapi import Depends
from ledger.errors.common import NotFoundError
from ledger.models.base import BaseModel
from ledger.schemas.base import BaseFilterSchema, PaginationSchema
from ledger.uow import get_uow
from sqlalchemy.orm import Query, Session

M = TypeVar("M", bound=BaseModel)  # model
BFS = TypeVar("BFS", bound=BaseFilterSchema)


class BaseService(Generic[M]):
    model: Type[M]
    db: Session

    def __init__(self, db: Session = Depends(get_uow)):
        self.db = db

    def get(self, obj_id: int) -> M:
        db_obj = self.db.query(self.model).filter(self.model.id == obj_id).first()
        if not db_obj:
            raise NotFoundError(f"{self.model.__name__} id={obj_id}")
        return db_obj

    def _apply_base_filters(self, query: Query[M], filters: BFS) -> Query[M]:
        """Common filters that are present for any database model"""
        if filters.comment is not None:
            query = query.filter(self.model.comment.ilike(f"%{filters.comment}%"))
        if filters.created_after is not None:
            query = query.filter(self.model.created_at >= filters.created_after)
        if filters.created_before is not None:
            query = query.filter(self.model.created_at <= filters.created_before)
        return query

    def _apply_filters(self, query: Query[M], filters: BFS) -> Query[M]:
        """Filters for a particular model. To be overridden by child class."""
        return query

    def get_all(
        self, filters: BFS | None = None, skip=0, limit=100
    ) -> PaginationSchema[M]:
        query = self.db.query(self.model)
        if filters:
            query = self._apply_base_filters(query, filters)
            query = self._apply_filters(query, filters)
        # newest first, id breaks ties between rows written in the same instant
        query = query.order_by(self.model.created_at.desc(), self.model.id.desc())
        total = query.count()
        items = query.offset(skip).limit(limit).all()
        return PaginationSchema[M](items=items, total=total, skip=skip, limit=limit)
