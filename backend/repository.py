# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Generic persistence contract used by the services.

    find_one(**filters)      first row matching equality filters, or None
    find_by_id(id)           row by primary key, or None
    save(entity)             insert or update, commit, return entity
    delete_by_id(id)         delete, return whether a row existed
    find(where, sort, ...)   filtered list
    paginate(where, ...)     Page(items, total_pages, current_page, total_records)

Uniqueness
----------
The check-then-insert in the services is only a friendly early answer; two
concurrent registrations can both pass it.  The real guarantee is the
unique indexes.  ``save`` turns the resulting ``IntegrityError`` into
``DuplicateIdentity`` naming the column that collided.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import DuplicateIdentity

ModelT = TypeVar("ModelT")


@dataclass
class Page(Generic[ModelT]):
    items: list = field(default_factory=list)
    total_pages: int = 0
    current_page: int = 1
    total_records: int = 0
    limit: int = 10

    @classmethod
    def from_items(cls, items: Sequence, page: int = 1, limit: int = 10) -> "Page":
        """Paginate an already-filtered in-memory list."""
        page = max(page, 1)
        limit = max(limit, 1)
        start = (page - 1) * limit
        return cls(
            items=list(items[start:start + limit]),
            total_pages=math.ceil(len(items) / limit),
            current_page=page,
            total_records=len(items),
            limit=limit,
        )


class Repository(Generic[ModelT]):
    def __init__(self, db: AsyncSession, model: type, unique_fields: Sequence[str] = ()):
        self.db = db
        self.model = model
        self.unique_fields = tuple(unique_fields)

    # -- reads -------------------------------------------------------------

    async def find_by_id(self, entity_id: Any, *options) -> Optional[ModelT]:
        # Loader options (e.g. undefer) must apply even if the row is already
        # in the identity map, hence populate_existing.
        return await self.db.get(
            self.model,
            entity_id,
            options=list(options) or None,
            populate_existing=bool(options),
        )

    async def find_one(self, *options, **filters) -> Optional[ModelT]:
        stmt = select(self.model).filter_by(**filters).options(*options).limit(1)
        return (await self.db.execute(stmt)).scalars().first()

    async def find(
        self,
        where: Iterable = (),
        order_by: Iterable = (),
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list:
        stmt = select(self.model).where(*where).order_by(*order_by).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self.db.execute(stmt)).scalars().all())

    async def count(self, where: Iterable = ()) -> int:
        stmt = select(func.count()).select_from(self.model).where(*where)
        return (await self.db.execute(stmt)).scalar_one()

    async def paginate(
        self,
        where: Iterable = (),
        order_by: Iterable = (),
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        where = list(where)
        page = max(page, 1)
        limit = max(limit, 1)
        total = await self.count(where)
        items = await self.find(where, order_by, skip=(page - 1) * limit, limit=limit)
        return Page(
            items=items,
            total_pages=math.ceil(total / limit),
            current_page=page,
            total_records=total,
            limit=limit,
        )

    # -- writes ------------------------------------------------------------

    async def save(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateIdentity(self._collided_field(exc), cause=str(exc.orig)) from exc
        return entity

    async def delete_by_id(self, entity_id: Any) -> bool:
        entity = await self.find_by_id(entity_id)
        if entity is None:
            return False
        await self.db.delete(entity)
        await self.db.commit()
        return True

    def _collided_field(self, exc: IntegrityError) -> str:
        # MySQL: "Duplicate entry 'x' for key 'students.ix_students_email'"
        # SQLite: "UNIQUE constraint failed: students.email"
        # Only the key part names the column; the duplicated value may contain anything
        text = str(exc.orig).lower()
        for marker in ("for key", "failed:"):
            if marker in text:
                text = text.rsplit(marker, 1)[1]
                break
        for name in self.unique_fields:
            if name.lower() in text:
                return name
        return self.unique_fields[0] if self.unique_fields else "unknown"
