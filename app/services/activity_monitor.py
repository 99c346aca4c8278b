from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.config import Settings, settings
from app.core.exceptions import RoomNotFoundException
from app.core.unit_of_work import transaction
from app.repositories.post_repository import IPostRepository
from app.repositories.room_repository import IRoomRepository
from app.schemas.room_schemas import ActivityReport

logger = structlog.get_logger(__name__)


class ActivityMonitor:
    """
    Measures room activity as the number of distinct recent posters.

    The score is stored on the room; deciding whether to lock is left to the
    moderation caller (see app.workers.tasks.enforce_room_activity).
    """

    def __init__(
        self,
        db: AsyncSession,
        room_repo: IRoomRepository,
        post_repo: IPostRepository,
        config: Settings = settings,
    ):
        self.db = db
        self.room_repo = room_repo
        self.post_repo = post_repo
        self.config = config

    async def check_activity(self, room_id: int, now: datetime | None = None) -> ActivityReport:
        """
        Count distinct authors who posted within the activity window.
        :param room_id: Room to measure
        :param now: Reference time, defaults to current UTC time
        :return: Score and whether the room meets the minimum
        """
        now = now or utcnow()
        since = now - timedelta(hours=self.config.activity_window_hours)

        async with transaction(self.db, "check_activity"):
            room = await self.room_repo.get_by_id_for_update(room_id)
            if room is None:
                raise RoomNotFoundException(room_id)

            unique_posters = await self.post_repo.count_unique_posters(room_id, since)
            room.activity_score = unique_posters
            room.last_activity_check = now

        meets_requirement = unique_posters >= self.config.activity_min_unique_posters
        logger.info(
            "room_activity_checked",
            room_id=room_id,
            unique_posters=unique_posters,
            meets_requirement=meets_requirement,
        )
        return ActivityReport(
            room_id=room_id,
            unique_posters=unique_posters,
            meets_requirement=meets_requirement,
            checked_at=now,
        )
