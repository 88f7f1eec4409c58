"""
SQLAlchemy models for classes and their rosters.
"""

from enum import Enum

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ohmage.shared.database import Base


class ClassRole(str, Enum):
    """Role of a user within a class roster."""

    PRIVILEGED = "privileged"
    RESTRICTED = "restricted"


class Class(Base):
    """A class (group of users) that campaigns can be attached to."""

    __tablename__ = "class"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    urn: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Class(id={self.id}, urn='{self.urn}')>"


class UserClass(Base):
    """Roster entry linking a user to a class."""

    __tablename__ = "user_class"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    class_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("class.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Plain text: rows outside ClassRole are reported, not rejected on load.
    class_role: Mapped[str] = mapped_column(String(32), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "class_id", name="uq_user_class"),
    )
