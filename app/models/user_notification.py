from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.core.constants import MAX_PSEUDO_LENGTH
from app.core.database import Base


class UserNotification(Base):
    """Queued lifecycle notification awaiting delivery."""

    __tablename__ = "user_notifications"

    id = Column(Integer, primary_key=True)
    user_pseudo = Column(String(MAX_PSEUDO_LENGTH), nullable=False, index=True)
    notification_type = Column(String(50), nullable=False)
    notification_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<UserNotification(id={self.id}, pseudo='{self.user_pseudo}', type='{self.notification_type}')>"
