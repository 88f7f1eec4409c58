"""
SQLAlchemy models for users.
"""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ohmage.shared.database import Base


class User(Base):
    """A login account; campaign and class membership live in join tables."""

    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(
        String(25),
        unique=True,
        nullable=False,
        index=True,
    )
    admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    campaign_creation_privilege: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, admin={self.admin})>"
