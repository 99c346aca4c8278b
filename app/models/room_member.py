from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.constants import MAX_PSEUDO_LENGTH, ONDELETE_CASCADE
from app.core.database import Base


class RoomMember(Base):
    """Membership of one pseudo in one room, with per-room activity tracking."""

    __tablename__ = "room_members"

    room_id = Column(Integer, ForeignKey("rooms.id", ondelete=ONDELETE_CASCADE), primary_key=True)
    user_pseudo = Column(String(MAX_PSEUDO_LENGTH), primary_key=True, index=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    is_founder = Column(Boolean, nullable=False, default=False)
    is_moderator = Column(Boolean, nullable=False, default=False)

    last_post_at = Column(DateTime(timezone=True), nullable=True)
    last_view_at = Column(DateTime(timezone=True), nullable=True)
    post_count = Column(Integer, nullable=False, default=0)

    room = relationship("Room", back_populates="members", lazy="raise")

    def __repr__(self):
        return f"<RoomMember(room={self.room_id}, pseudo='{self.user_pseudo}')>"
