# eduledger/services/base_service.py
"""Base service with common keyed-record operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from typing import Type, Any, Optional, TypeVar, Generic

from ..core.errors import NotFoundError

# Define generic type
T = TypeVar('T')

class BaseService(Generic[T]):
    resource_name: str = "Record"

    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    async def get(self, id: Any) -> Optional[T]:
        stmt = select(self.model).where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_404(self, id: Any) -> T:
        obj = await self.get(id)
        if obj is None:
            raise NotFoundError(self.resource_name, id)
        return obj

    async def hard_delete(self, id: Any) -> None:
        """Permanently delete record from database"""
        obj = await self.get_or_404(id)
        await self.db.delete(obj)
        await self.db.commit()

    def upsert_statement(self):
        """Dialect-specific INSERT supporting ON CONFLICT for keyed upserts"""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(self.model)
        if dialect == "sqlite":
            return sqlite.insert(self.model)
        raise NotImplementedError(f"Keyed upsert is not supported on {dialect}")
