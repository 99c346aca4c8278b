from abc import abstractmethod

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user_notification import UserNotification
from app.repositories.base_repository import BaseRepository


class INotificationRepository(BaseRepository[UserNotification]):
    """Abstract interface for UserNotification repository."""

    @abstractmethod
    async def get_pending_for_user(self, user_pseudo: str) -> list[UserNotification]:
        """Get undelivered notifications for a pseudo, oldest first."""
        pass


class NotificationRepository(INotificationRepository):
    """SQLAlchemy implementation of UserNotification repository."""

    def __init__(self, db: AsyncSession):
        super().__init__(db)

    async def get_by_id(self, id: int) -> UserNotification | None:
        query = select(UserNotification).where(UserNotification.id == id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_all(self, limit: int = 100, offset: int = 0) -> list[UserNotification]:
        query = select(UserNotification).order_by(UserNotification.id).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, notification: UserNotification) -> UserNotification:
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def exists(self, id: int) -> bool:
        notification = await self.get_by_id(id)
        return notification is not None

    async def get_pending_for_user(self, user_pseudo: str) -> list[UserNotification]:
        query = (
            select(UserNotification)
            .where(and_(UserNotification.user_pseudo == user_pseudo, UserNotification.delivered_at.is_(None)))
            .order_by(UserNotification.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
