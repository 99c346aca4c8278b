from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.implementations.logging_notification_sink import LoggingNotificationSink
from app.interfaces.notification_sink import INotificationSink
from app.repositories.post_repository import IPostRepository
from app.repositories.repository_dependencies import get_post_repository, get_room_repository
from app.repositories.room_repository import IRoomRepository
from app.services.activity_monitor import ActivityMonitor
from app.services.expiration_sweeper import ExpirationSweeper
from app.services.post_service import PostService
from app.services.room_service import RoomService


def get_notification_sink(request: Request) -> INotificationSink:
    """
    Notification sink created at startup, or a logging sink when no queue is available.
    :param request: Current request, used to reach app.state
    :return: Notification sink instance
    """
    sink = getattr(request.app.state, "notification_sink", None)
    return sink or LoggingNotificationSink()


def get_activity_monitor(
    db: AsyncSession = Depends(get_db),
    room_repo: IRoomRepository = Depends(get_room_repository),
    post_repo: IPostRepository = Depends(get_post_repository),
) -> ActivityMonitor:
    """
    Create ActivityMonitor instance with injected dependencies.
    :return: ActivityMonitor instance
    """
    return ActivityMonitor(db=db, room_repo=room_repo, post_repo=post_repo)


def get_room_service(
    db: AsyncSession = Depends(get_db),
    room_repo: IRoomRepository = Depends(get_room_repository),
    post_repo: IPostRepository = Depends(get_post_repository),
    activity_monitor: ActivityMonitor = Depends(get_activity_monitor),
    notification_sink: INotificationSink = Depends(get_notification_sink),
) -> RoomService:
    """
    Create RoomService instance with injected dependencies.
    :return: RoomService instance
    """
    return RoomService(
        db=db,
        room_repo=room_repo,
        post_repo=post_repo,
        activity_monitor=activity_monitor,
        notification_sink=notification_sink,
    )


def get_post_service(
    db: AsyncSession = Depends(get_db),
    post_repo: IPostRepository = Depends(get_post_repository),
    room_repo: IRoomRepository = Depends(get_room_repository),
) -> PostService:
    """
    Create PostService instance with injected dependencies.
    :return: PostService instance
    """
    return PostService(db=db, post_repo=post_repo, room_repo=room_repo)


def get_expiration_sweeper(
    db: AsyncSession = Depends(get_db),
    post_repo: IPostRepository = Depends(get_post_repository),
    notification_sink: INotificationSink = Depends(get_notification_sink),
) -> ExpirationSweeper:
    """
    Create ExpirationSweeper instance with injected dependencies.
    :return: ExpirationSweeper instance
    """
    return ExpirationSweeper(db=db, post_repo=post_repo, notification_sink=notification_sink)
