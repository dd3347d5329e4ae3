"""
Base Repository Pattern

Purpose
-------
Type-safe, generic repository abstraction for database operations following
SQLAlchemy 2.0 async patterns.

Design Notes
------------
This base repository provides:
- Type-safe reads with optional pessimistic locking (`for_update=True`)
- Existence/counting utilities
- Atomic upsert (`INSERT ... ON CONFLICT DO UPDATE`) for PostgreSQL and SQLite
- Structured debug logging for every operation

What this class does NOT do:
- Manage transactions (services/DatabaseService handle that)
- Contain business logic

Usage
-----
    class TutorOnboardingRepository(BaseRepository[TutorOnboarding]):
        async def find_by_tutor(self, session, tutor_id, for_update=False):
            return await self.find_one_where(
                session,
                TutorOnboarding.tutor_id == tutor_id,
                for_update=for_update,
            )
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Type,
    TypeVar,
)

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class BaseRepository(Generic[T]):
    """
    Generic base repository for type-safe database operations.

    Type Parameters:
        T: The SQLAlchemy model class this repository manages
    """

    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """Get a single record by primary key (no lock)."""
        instance = await session.get(self.model_class, id_value)

        self.log.debug(
            f"Repository.get: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "id": id_value,
                "found": instance is not None,
            },
        )
        return instance

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
    ) -> Optional[T]:
        """
        Find a single record matching conditions.

        Args:
            session: Database session
            *conditions: SQLAlchemy filter conditions
            for_update: If True, use SELECT FOR UPDATE
        """
        stmt = select(self.model_class).where(*conditions)
        if for_update:
            stmt = stmt.with_for_update()

        result = await session.execute(stmt)
        instance = result.scalar_one_or_none()

        self.log.debug(
            f"Repository.find_one_where: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "found": instance is not None,
                "locked": for_update,
            },
        )
        return instance

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
        for_update: bool = False,
        limit: Optional[int] = None,
    ) -> List[T]:
        """
        Find multiple records matching conditions.

        Args:
            session: Database session
            *conditions: SQLAlchemy filter conditions
            order_by: Optional ordering clauses
            for_update: If True, use SELECT FOR UPDATE
            limit: Optional maximum number of results
        """
        stmt = select(self.model_class).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if for_update:
            stmt = stmt.with_for_update()
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await session.execute(stmt)
        instances = list(result.scalars().all())

        self.log.debug(
            f"Repository.find_many_where: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "found_count": len(instances),
                "locked": for_update,
                "limit": limit,
            },
        )
        return instances

    async def count_where(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> int:
        stmt = select(func.count()).select_from(self.model_class).where(*conditions)
        result = await session.execute(stmt)
        count = result.scalar_one()

        self.log.debug(
            f"Repository.count_where: {self.model_class.__name__}",
            extra={"model": self.model_class.__name__, "count": count},
        )
        return count

    async def exists_where(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> bool:
        return await self.count_where(session, *conditions) > 0

    def add(self, session: AsyncSession, instance: T) -> T:
        session.add(instance)
        self.log.debug(
            f"Repository.add: {self.model_class.__name__}",
            extra={"model": self.model_class.__name__},
        )
        return instance

    async def upsert(
        self,
        session: AsyncSession,
        values: Dict[str, Any],
        *,
        conflict_columns: Sequence[str],
        update_columns: Sequence[str],
        where: Optional[ColumnElement[bool]] = None,
    ) -> int:
        """
        Insert a row or update the conflicting one in a single statement.

        Args:
            session: Database session
            values: Column values for the new row
            conflict_columns: Columns of the unique constraint to conflict on
            update_columns: Columns copied from the proposed row on conflict
            where: Optional guard on the existing row; when it is false the
                existing row is left untouched

        Returns:
            Number of rows inserted or updated (0 when the guard blocked it)

        Raises:
            NotImplementedError: For dialects without ON CONFLICT support
        """
        dialect = session.get_bind().dialect.name
        insert_factory = _UPSERT_DIALECTS.get(dialect)
        if insert_factory is None:
            raise NotImplementedError(f"upsert is not supported on dialect '{dialect}'")

        stmt = insert_factory(self.model_class).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_={column: stmt.excluded[column] for column in update_columns},
            where=where,
        )

        result = await session.execute(stmt)
        affected = result.rowcount

        self.log.debug(
            f"Repository.upsert: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "dialect": dialect,
                "affected": affected,
            },
        )
        return affected
