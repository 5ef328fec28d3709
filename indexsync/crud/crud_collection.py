"""CRUD operations for collections."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from indexsync.core.datetime_utils import utc_now_naive
from indexsync.core.shared_models import CollectionStatus
from indexsync.models.collection import Collection


class CRUDCollection:
    """CRUD operations for collection configuration rows."""

    def __init__(self):
        """Initialize the CRUD object."""
        self.model = Collection

    async def get(self, db: AsyncSession, id: UUID) -> Optional[Collection]:
        """Get collection by ID.

        Args:
            db: Database session
            id: Collection ID

        Returns:
            Collection if found, None otherwise
        """
        result = await db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_multi(self, db: AsyncSession) -> List[Collection]:
        """Get all collections ordered by creation time."""
        result = await db.execute(select(self.model).order_by(self.model.created_at))
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, *, obj_in: Dict[str, Any]) -> Collection:
        """Create a new collection.

        Args:
            db: Database session
            obj_in: Column values

        Returns:
            Created collection
        """
        db_obj = Collection(**obj_in)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self, db: AsyncSession, *, db_obj: Collection, obj_in: Dict[str, Any]
    ) -> Collection:
        """Update a collection through the ORM.

        Args:
            db: Database session
            db_obj: Loaded collection
            obj_in: Column values to set

        Returns:
            Updated collection
        """
        for field, value in obj_in.items():
            setattr(db_obj, field, value)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update_fields(self, db: AsyncSession, *, id: UUID, values: Dict[str, Any]) -> int:
        """Write columns with a plain UPDATE statement, bypassing ORM events.

        Args:
            db: Database session
            id: Collection ID
            values: Column values to set

        Returns:
            Number of rows updated
        """
        result = await db.execute(
            update(self.model)
            .where(self.model.id == id)
            .values(**values, modified_at=utc_now_naive())
        )
        await db.commit()
        return result.rowcount

    async def compare_and_set_status(
        self,
        db: AsyncSession,
        *,
        id: UUID,
        expected: CollectionStatus,
        target: CollectionStatus,
    ) -> bool:
        """Atomically move status from ``expected`` to ``target``.

        Args:
            db: Database session
            id: Collection ID
            expected: Status the row must currently have
            target: Status to write

        Returns:
            True if this call performed the transition
        """
        result = await db.execute(
            update(self.model)
            .where(and_(self.model.id == id, self.model.status == expected.value))
            .values(status=target.value, modified_at=utc_now_naive())
        )
        await db.commit()
        return result.rowcount == 1

    async def remove(self, db: AsyncSession, *, id: UUID) -> Optional[Collection]:
        """Remove a collection.

        Args:
            db: Database session
            id: Collection ID

        Returns:
            The deleted collection, or None if not found
        """
        db_obj = await self.get(db, id=id)
        if not db_obj:
            return None

        await db.delete(db_obj)
        await db.commit()
        return db_obj


# Singleton instance
collection = CRUDCollection()
