import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.constants import MAX_PSEUDO_LENGTH, MAX_ROOM_NAME_LENGTH
from app.core.database import Base


class RoomStatus(enum.Enum):
    """Room lifecycle state"""

    INACTIVE = "inactive"
    ACTIVE = "active"
    LOCKED = "locked"
    DELETED = "deleted"


class Room(Base):
    """
    Support room with a fixed-membership roster.

    Business Rules:
    - member_count is a cached copy of the roster size, updated in the same
      transaction as every roster change
    - Rooms are never physically removed; deletion sets status=DELETED and deleted_at
    - Status changes go through app.services.room_state_machine
    """

    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True)
    name = Column(String(MAX_ROOM_NAME_LENGTH), unique=True, nullable=False)
    created_by = Column(String(MAX_PSEUDO_LENGTH), nullable=False)

    member_count = Column(Integer, nullable=False, default=0)
    status = Column(Enum(RoomStatus), nullable=False, default=RoomStatus.INACTIVE, index=True)

    activity_score = Column(Integer, nullable=False, default=0)
    last_activity_check = Column(DateTime(timezone=True), nullable=True)

    is_locked = Column(Boolean, nullable=False, default=False)
    lock_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    members = relationship("RoomMember", back_populates="room", lazy="raise")
    posts = relationship("RoomPost", back_populates="room", lazy="raise")

    def __repr__(self):
        return f"<Room(id={self.id}, name='{self.name}', status={self.status})>"
