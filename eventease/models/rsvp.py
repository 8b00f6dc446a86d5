from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventease.models.base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin
from eventease.models.user import User


class RsvpStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"


class Rsvp(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "rsvps"
    __table_args__ = (
        UniqueConstraint("event_id", "participant_id", name="uq_rsvps_event_participant"),
        sa.Index("ix_rsvps_event_status", "event_id", "status"),
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    participant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    participant: Mapped[User] = relationship(lazy="joined")

    status: Mapped[RsvpStatus] = mapped_column(
        sa.Enum(RsvpStatus, name="rsvp_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RsvpStatus.ACTIVE,
    )
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    # One-way latch for the current registration; reset only on reactivation.
    reminder_sent: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False, server_default=sa.false()
    )
