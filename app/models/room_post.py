from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.constants import MAX_POST_TITLE_LENGTH, MAX_PSEUDO_LENGTH, ONDELETE_CASCADE
from app.core.database import Base


class RoomPost(Base):
    """
    Time-boxed post inside a room.

    Business Rules:
    - expires_at NULL means the post never expires and is never swept
    - is_expired flips false -> true exactly once, together with deleted_at
    - Posts are only soft-deleted
    """

    __tablename__ = "room_posts"

    id = Column(Integer, primary_key=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete=ONDELETE_CASCADE), nullable=False, index=True)
    author_pseudo = Column(String(MAX_PSEUDO_LENGTH), nullable=False, index=True)

    title = Column(String(MAX_POST_TITLE_LENGTH), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    expires_at = Column(DateTime(timezone=True), nullable=True)
    lifetime_days = Column(Integer, nullable=True)

    is_pinned = Column(Boolean, nullable=False, default=False)
    is_expired = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    extension_reason = Column(Text, nullable=True)
    no_expire_reason = Column(Text, nullable=True)

    room = relationship("Room", back_populates="posts", lazy="raise")
    replies = relationship("PostReply", back_populates="post", lazy="raise")

    __table_args__ = (Index("ix_room_posts_expiry", "is_expired", "expires_at"),)

    def __repr__(self):
        return f"<RoomPost(id={self.id}, room={self.room_id}, expired={self.is_expired})>"
