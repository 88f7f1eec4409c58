"""
Class repository for database operations.
"""

from typing import Any, NamedTuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.classes.models import Class, UserClass


class ClassMember(NamedTuple):
    """A roster entry as read from the database."""

    user_id: int
    class_role: str


def decode_member_row(row: Any) -> ClassMember:
    """Decode a ``(user_id, class_role)`` result row into a ClassMember."""
    return ClassMember(user_id=int(row.user_id), class_role=str(row.class_role))


class ClassRepository:
    """Repository for class database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def get_by_urn(self, class_urn: str) -> Class | None:
        """Get class by URN."""
        result = await self._session.execute(select(Class).where(Class.urn == class_urn))
        return result.scalar_one_or_none()

    async def get_id_by_urn(self, class_urn: str) -> int | None:
        """Get the primary key of a class by URN."""
        result = await self._session.execute(select(Class.id).where(Class.urn == class_urn))
        return result.scalar_one_or_none()

    async def get_members(self, class_urn: str) -> list[ClassMember]:
        """Get every roster entry of a class.

        Args:
            class_urn: Class URN.

        Returns:
            Members with their class role, unvalidated.
        """
        stmt = (
            select(UserClass.user_id, UserClass.class_role)
            .join(Class, Class.id == UserClass.class_id)
            .where(Class.urn == class_urn)
            .order_by(UserClass.user_id)
        )
        result = await self._session.execute(stmt)
        return [decode_member_row(row) for row in result.all()]
