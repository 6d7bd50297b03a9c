"""
Thin row store over an async SQLAlchemy session.
Every SQLAlchemy failure is re-raised as PersistenceError so callers only
deal with the service-layer error taxonomy.
"""
import logging
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.services.errors import PersistenceError

logger = logging.getLogger(__name__)


class RowStore:
    """
    select / insert / delete / update against one session.

    Nothing is committed until commit() is called, so a sequence of calls
    followed by commit() is one transaction on a transactional backend.
    """

    # Statements issued before commit() are rolled back on failure
    atomic = True

    def __init__(self, session: AsyncSession):
        self.session = session

    async def select(
        self,
        model: Any,
        *criteria: Any,
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Any]:
        query = select(model).where(*criteria)
        if order_by is not None:
            query = query.order_by(*order_by)
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        try:
            result = await self.session.execute(query)
            return list(result.scalars().unique().all())
        except SQLAlchemyError as e:
            logger.error(f"Select on {model.__tablename__} failed: {str(e)}", exc_info=True)
            raise PersistenceError(f"Failed to read {model.__tablename__}: {str(e)}", stage="select")

    async def get(self, model: Any, ident: Any) -> Optional[Any]:
        try:
            return await self.session.get(model, ident)
        except SQLAlchemyError as e:
            logger.error(f"Get on {model.__tablename__} failed: {str(e)}", exc_info=True)
            raise PersistenceError(f"Failed to read {model.__tablename__}: {str(e)}", stage="select")

    async def insert(self, model: Any, rows: Iterable[dict]) -> List[Any]:
        """
        Insert rows in one batch.

        Args:
            model: Mapped class to instantiate
            rows: Column payloads, one per row

        Returns:
            list: Inserted instances in the same order, with server-assigned
                  columns (id, created_at) loaded

        Raises:
            PersistenceError: If the flush or refresh fails
        """
        instances = [model(**row) for row in rows]
        try:
            self.session.add_all(instances)
            await self.session.flush()
            for instance in instances:
                await self.session.refresh(instance)
        except SQLAlchemyError as e:
            logger.error(f"Insert into {model.__tablename__} failed: {str(e)}", exc_info=True)
            raise PersistenceError(f"Failed to insert into {model.__tablename__}: {str(e)}", stage="insert")
        return instances

    async def update(self, model: Any, values: dict, *criteria: Any) -> int:
        try:
            result = await self.session.execute(
                update(model).where(*criteria).values(**values)
            )
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Update on {model.__tablename__} failed: {str(e)}", exc_info=True)
            raise PersistenceError(f"Failed to update {model.__tablename__}: {str(e)}", stage="update")

    async def delete(self, model: Any, *criteria: Any) -> int:
        try:
            result = await self.session.execute(delete(model).where(*criteria))
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Delete from {model.__tablename__} failed: {str(e)}", exc_info=True)
            raise PersistenceError(f"Failed to delete from {model.__tablename__}: {str(e)}", stage="delete")

    async def refresh(self, instance: Any) -> Any:
        try:
            await self.session.refresh(instance)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to reload row: {str(e)}", stage="select")
        return instance

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Commit failed: {str(e)}", exc_info=True)
            raise PersistenceError(f"Failed to commit changes: {str(e)}", stage="commit")

    async def rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            # Rollback failures are reported but do not replace the original error
            logger.error(f"Rollback failed: {str(e)}", exc_info=True)
