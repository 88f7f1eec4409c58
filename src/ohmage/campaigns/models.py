"""
SQLAlchemy models for campaigns and their associations.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from ohmage.shared.database import Base


class RunningState(str, Enum):
    """Whether a campaign accepts uploads."""

    RUNNING = "running"
    STOPPED = "stopped"


class PrivacyState(str, Enum):
    """Visibility of a campaign's data."""

    SHARED = "shared"
    PRIVATE = "private"


class CampaignRole(str, Enum):
    """Role of a user within a campaign."""

    SUPERVISOR = "supervisor"
    AUTHOR = "author"
    ANALYST = "analyst"
    PARTICIPANT = "participant"


class Campaign(Base):
    """A campaign: a survey definition (XML) plus its lifecycle state."""

    __tablename__ = "campaign"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    urn: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    xml: Mapped[str] = mapped_column(Text, nullable=False)
    running_state: Mapped[str] = mapped_column(
        SQLEnum(*[s.value for s in RunningState], name="campaign_running_state"),
        nullable=False,
        default=RunningState.RUNNING.value,
    )
    privacy_state: Mapped[str] = mapped_column(
        SQLEnum(*[s.value for s in PrivacyState], name="campaign_privacy_state"),
        nullable=False,
        default=PrivacyState.PRIVATE.value,
    )
    authored_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    creation_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Campaign(id={self.id}, urn='{self.urn}', running_state={self.running_state})>"


class CampaignClass(Base):
    """Association between a campaign and a class."""

    __tablename__ = "campaign_class"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("campaign.id", ondelete="CASCADE"),
        nullable=False,
    )
    class_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("class.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("campaign_id", "class_id", name="uq_campaign_class"),
    )


class UserRole(Base):
    """Lookup table of campaign role names."""

    __tablename__ = "user_role"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)


class UserRoleCampaign(Base):
    """Grant of one campaign role to one user."""

    __tablename__ = "user_role_campaign"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    campaign_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("campaign.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_role.id"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "campaign_id", "user_role_id", name="uq_user_role_campaign"),
    )
