from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.config import Settings, settings
from app.core.constants import DEFAULT_LOCK_REASON
from app.core.exceptions import (
    AlreadyMemberException,
    DuplicateMembersException,
    DuplicateResourceException,
    InsufficientMembersException,
    NotMemberException,
    RoomNotFoundException,
)
from app.core.unit_of_work import transaction
from app.interfaces.notification_sink import INotificationSink, NotificationEvent
from app.models.room import Room, RoomStatus
from app.models.room_member import RoomMember
from app.repositories.post_repository import IPostRepository
from app.repositories.room_repository import IRoomRepository
from app.schemas.room_schemas import (
    ActivityReport,
    MemberCountReconciliation,
    MembershipChangeResult,
    UserRoomResponse,
)
from app.services.activity_monitor import ActivityMonitor
from app.services.room_state_machine import RoomEvent, initial_status, transition

logger = structlog.get_logger(__name__)


class RoomService:
    """Room registry: creation, roster changes and lifecycle transitions."""

    def __init__(
        self,
        db: AsyncSession,
        room_repo: IRoomRepository,
        post_repo: IPostRepository,
        activity_monitor: ActivityMonitor,
        notification_sink: INotificationSink,
        config: Settings = settings,
    ):
        self.db = db
        self.room_repo = room_repo
        self.post_repo = post_repo
        self.activity_monitor = activity_monitor
        self.notification_sink = notification_sink
        self.config = config

    async def create_room(
        self,
        name: str,
        founder: str,
        initial_members: list[str],
        now: datetime | None = None,
    ) -> Room:
        """
        Create a room together with its founding roster.
        :param name: Unique room name
        :param founder: Pseudo of the founder (becomes moderator)
        :param initial_members: Other founding pseudos
        :param now: Creation time, defaults to current UTC time
        :return: Created room
        """
        roster = [founder, *initial_members]
        duplicates = sorted({pseudo for pseudo in roster if roster.count(pseudo) > 1})
        if duplicates:
            raise DuplicateMembersException(duplicates)

        total = len(roster)
        if total < self.config.room_min_members:
            raise InsufficientMembersException(total, self.config.room_min_members)

        now = now or utcnow()

        async with transaction(self.db, "create_room"):
            if await self.room_repo.name_exists(name):
                raise DuplicateResourceException("Room", name)

            room = Room(
                name=name,
                created_by=founder,
                member_count=total,
                status=initial_status(total, self.config.room_activation_members),
                activity_score=0,
                is_locked=False,
                created_at=now,
            )
            await self.room_repo.create(room)

            await self.room_repo.add_member(
                RoomMember(
                    room_id=room.id,
                    user_pseudo=founder,
                    joined_at=now,
                    is_founder=True,
                    is_moderator=True,
                    post_count=0,
                )
            )
            for pseudo in initial_members:
                await self.room_repo.add_member(
                    RoomMember(
                        room_id=room.id,
                        user_pseudo=pseudo,
                        joined_at=now,
                        is_founder=False,
                        is_moderator=False,
                        post_count=0,
                    )
                )

        logger.info(
            "room_created",
            room_id=room.id,
            name=name,
            founder=founder,
            member_count=total,
            status=room.status.value,
        )
        return room

    async def add_member(self, room_id: int, user_pseudo: str, now: datetime | None = None) -> MembershipChangeResult:
        """
        Add a pseudo to the roster, activating the room when it reaches the threshold.
        :param room_id: Target room ID
        :param user_pseudo: Joining pseudo
        :return: Resulting member count and status
        """
        now = now or utcnow()

        async with transaction(self.db, "add_member"):
            room = await self._get_room_for_update_or_404(room_id)

            if await self.room_repo.get_member(room_id, user_pseudo) is not None:
                raise AlreadyMemberException(room_id, user_pseudo)

            await self.room_repo.add_member(
                RoomMember(
                    room_id=room_id,
                    user_pseudo=user_pseudo,
                    joined_at=now,
                    is_founder=False,
                    is_moderator=False,
                    post_count=0,
                )
            )

            previous_status = room.status
            room.member_count += 1
            room.status = transition(
                room.status,
                RoomEvent.MEMBER_JOINED,
                room.member_count,
                self.config.room_min_members,
                self.config.room_activation_members,
            )
            activated = previous_status != RoomStatus.ACTIVE and room.status == RoomStatus.ACTIVE
            recipients = await self._member_pseudos(room_id) if activated else []

        logger.info(
            "member_added",
            room_id=room_id,
            user_pseudo=user_pseudo,
            member_count=room.member_count,
            status=room.status.value,
        )

        if activated:
            logger.info("room_activated", room_id=room_id, member_count=room.member_count)
            await self._notify(recipients, NotificationEvent.ROOM_ACTIVATED, {"room_id": room_id, "room_name": room.name})

        return MembershipChangeResult(
            room_id=room_id,
            user_pseudo=user_pseudo,
            member_count=room.member_count,
            status=room.status,
        )

    async def remove_member(self, room_id: int, user_pseudo: str, now: datetime | None = None) -> MembershipChangeResult:
        """
        Remove a pseudo from the roster.

        Dropping below the survival threshold, or the founder leaving,
        soft-deletes the whole room in the same transaction: posts are marked
        deleted and the roster is cleared. The result carries room_deleted=True
        in that case.
        """
        now = now or utcnow()
        remaining: list[str] = []

        async with transaction(self.db, "remove_member"):
            room = await self._get_room_for_update_or_404(room_id)

            member = await self.room_repo.get_member(room_id, user_pseudo, for_update=True)
            if member is None:
                raise NotMemberException(room_id, user_pseudo)

            founder_left = member.is_founder
            event = RoomEvent.FOUNDER_LEFT if founder_left else RoomEvent.MEMBER_LEFT
            await self.room_repo.remove_member(member)
            room.member_count = max(0, room.member_count - 1)
            room.status = transition(
                room.status,
                event,
                room.member_count,
                self.config.room_min_members,
                self.config.room_activation_members,
            )

            member_count = room.member_count
            room_deleted = room.status == RoomStatus.DELETED
            reason = "founder_left" if founder_left else "insufficient_members"
            if room_deleted:
                remaining = await self._member_pseudos(room_id)
                await self._soft_delete_room(room, now, reason)

        logger.info(
            "member_removed",
            room_id=room_id,
            user_pseudo=user_pseudo,
            member_count=member_count,
            room_deleted=room_deleted,
        )

        payload = {"room_id": room_id, "room_name": room.name}
        await self._notify([user_pseudo], NotificationEvent.MEMBER_REMOVED, payload)
        if room_deleted:
            await self._notify(remaining, NotificationEvent.ROOM_DELETED, {**payload, "reason": reason})

        return MembershipChangeResult(
            room_id=room_id,
            user_pseudo=user_pseudo,
            member_count=member_count,
            status=room.status,
            room_deleted=room_deleted,
        )

    async def lock_room(self, room_id: int, reason: str | None = None) -> Room:
        """Lock an active room. Membership and posts are untouched."""
        reason = reason or DEFAULT_LOCK_REASON

        async with transaction(self.db, "lock_room"):
            room = await self._get_room_for_update_or_404(room_id)
            room.status = transition(room.status, RoomEvent.LOCK, room.member_count)
            room.is_locked = True
            room.lock_reason = reason
            recipients = await self._member_pseudos(room_id)

        logger.info("room_locked", room_id=room_id, reason=reason)
        await self._notify(
            recipients,
            NotificationEvent.ROOM_LOCKED,
            {"room_id": room_id, "room_name": room.name, "reason": reason},
        )
        return room

    async def unlock_room(self, room_id: int) -> Room:
        """Unlock a locked room and restore it to active."""
        async with transaction(self.db, "unlock_room"):
            room = await self._get_room_for_update_or_404(room_id)
            room.status = transition(room.status, RoomEvent.UNLOCK, room.member_count)
            room.is_locked = False
            room.lock_reason = None
            recipients = await self._member_pseudos(room_id)

        logger.info("room_unlocked", room_id=room_id)
        await self._notify(recipients, NotificationEvent.ROOM_UNLOCKED, {"room_id": room_id, "room_name": room.name})
        return room

    async def check_activity(self, room_id: int, now: datetime | None = None) -> ActivityReport:
        """Measure recent activity and store the score on the room."""
        return await self.activity_monitor.check_activity(room_id, now)

    async def get_room(self, room_id: int) -> Room:
        room = await self.room_repo.get_by_id(room_id)
        if room is None:
            raise RoomNotFoundException(room_id)
        return room

    async def get_active_rooms(self) -> list[Room]:
        return await self.room_repo.get_active_rooms()

    async def get_members(self, room_id: int) -> list[RoomMember]:
        await self.get_room(room_id)
        return await self.room_repo.get_members(room_id)

    async def get_user_rooms(self, user_pseudo: str) -> list[UserRoomResponse]:
        rows = await self.room_repo.get_user_rooms(user_pseudo)
        return [
            UserRoomResponse(
                id=room.id,
                name=room.name,
                member_count=room.member_count,
                status=room.status,
                is_locked=room.is_locked,
                joined_at=member.joined_at,
                is_founder=member.is_founder,
                is_moderator=member.is_moderator,
                last_post_at=member.last_post_at,
                last_view_at=member.last_view_at,
            )
            for room, member in rows
        ]

    async def record_view(self, room_id: int, user_pseudo: str, now: datetime | None = None) -> None:
        """Stamp the member's last view of the room."""
        async with transaction(self.db, "record_view"):
            await self.get_room(room_id)
            if not await self.room_repo.record_view(room_id, user_pseudo, now or utcnow()):
                raise NotMemberException(room_id, user_pseudo)

    async def reconcile_member_count(self, room_id: int) -> MemberCountReconciliation:
        """
        Recompute the roster size and repair the cached member_count if it drifted.
        :param room_id: Room to check
        :return: Cached and actual counts
        """
        async with transaction(self.db, "reconcile_member_count"):
            room = await self._get_room_for_update_or_404(room_id)
            cached = room.member_count
            actual = await self.room_repo.count_members(room_id)
            repaired = cached != actual
            if repaired:
                room.member_count = actual

        if repaired:
            logger.warning("member_count_drift_repaired", room_id=room_id, cached=cached, actual=actual)

        return MemberCountReconciliation(room_id=room_id, cached_count=cached, actual_count=actual, repaired=repaired)

    async def _soft_delete_room(self, room: Room, now: datetime, reason: str) -> None:
        """Cascade a room deletion inside the caller's transaction."""
        posts_deleted = await self.post_repo.soft_delete_room_posts(room.id, now)
        members_removed = await self.room_repo.remove_all_members(room.id)
        room.status = RoomStatus.DELETED
        room.deleted_at = now
        room.member_count = 0
        room.is_locked = False
        room.lock_reason = None

        logger.info(
            "room_deleted",
            room_id=room.id,
            reason=reason,
            posts_deleted=posts_deleted,
            members_removed=members_removed,
        )

    async def _member_pseudos(self, room_id: int) -> list[str]:
        return [member.user_pseudo for member in await self.room_repo.get_members(room_id)]

    async def _notify(self, recipients: list[str], event_kind: NotificationEvent, payload: dict) -> None:
        try:
            await self.notification_sink.notify_many(recipients, event_kind, payload)
        except Exception as e:
            logger.warning("notification_failed", event_kind=event_kind.value, error=str(e))

    async def _get_room_for_update_or_404(self, room_id: int) -> Room:
        """Get room by ID with a row lock or raise RoomNotFoundException."""
        room = await self.room_repo.get_by_id_for_update(room_id)
        if room is None:
            raise RoomNotFoundException(room_id)
        return room
