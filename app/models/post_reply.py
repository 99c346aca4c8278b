from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.constants import MAX_PSEUDO_LENGTH, ONDELETE_CASCADE
from app.core.database import Base


class PostReply(Base):
    """Reply to a room post. Recent reply volume drives the active-discussion override."""

    __tablename__ = "post_replies"

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("room_posts.id", ondelete=ONDELETE_CASCADE), nullable=False)
    author_pseudo = Column(String(MAX_PSEUDO_LENGTH), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    post = relationship("RoomPost", back_populates="replies", lazy="raise")

    __table_args__ = (Index("ix_post_replies_post_created", "post_id", "created_at"),)

    def __repr__(self):
        return f"<PostReply(id={self.id}, post={self.post_id})>"
