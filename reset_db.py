import asyncio

import structlog

from app.core.database import AsyncSessionLocal, create_tables, drop_tables
from app.core.logging_config import configure_logging
from app.implementations.logging_notification_sink import LoggingNotificationSink
from app.repositories.post_repository import PostRepository
from app.repositories.room_repository import RoomRepository
from app.services.activity_monitor import ActivityMonitor
from app.services.post_service import PostService
from app.services.room_service import RoomService

logger = structlog.get_logger(__name__)

DEMO_ROOMS = {
    "Night Owls": ["Alice", "Bob", "Carol", "Dave", "Eve", "Frank", "Grace", "Heidi", "Ivan", "Judy"],
    "Grief Circle": ["Mallory", "Niaj", "Olivia", "Peggy", "Rupert", "Sybil"],
}


async def reset_database_with_demo_rooms():
    """
    Drop and recreate all tables, then seed one active and one inactive room.
    """
    logger.info("database_reset_started")
    await drop_tables()
    await create_tables()

    async with AsyncSessionLocal() as db:
        room_repo = RoomRepository(db)
        post_repo = PostRepository(db)
        room_service = RoomService(
            db=db,
            room_repo=room_repo,
            post_repo=post_repo,
            activity_monitor=ActivityMonitor(db=db, room_repo=room_repo, post_repo=post_repo),
            notification_sink=LoggingNotificationSink(),
        )
        post_service = PostService(db=db, post_repo=post_repo, room_repo=room_repo)

        for name, pseudos in DEMO_ROOMS.items():
            founder, *members = pseudos
            room = await room_service.create_room(name, founder, members)
            await post_service.create_post(room.id, founder, f"Welcome to {name}", "Introduce yourself when ready.")
            logger.info("demo_room_seeded", room_id=room.id, name=name, status=room.status.value)

    logger.info("database_reset_completed")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(reset_database_with_demo_rooms())
