from abc import abstractmethod
from datetime import datetime

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.room import Room, RoomStatus
from app.models.room_member import RoomMember
from app.repositories.base_repository import BaseRepository


class IRoomRepository(BaseRepository[Room]):
    """Abstract interface for Room and membership roster repository."""

    @abstractmethod
    async def get_by_id_for_update(self, room_id: int) -> Room | None:
        """Get non-deleted room by ID, locking the row until the transaction ends."""
        pass

    @abstractmethod
    async def get_active_rooms(self) -> list[Room]:
        """Get all active, unlocked rooms."""
        pass

    @abstractmethod
    async def get_rooms_by_status(self, statuses: list[RoomStatus]) -> list[Room]:
        """Get non-deleted rooms in any of the given statuses."""
        pass

    @abstractmethod
    async def get_live_room_ids(self) -> list[int]:
        """Get IDs of all non-deleted rooms."""
        pass

    @abstractmethod
    async def name_exists(self, name: str) -> bool:
        """Check if a room name is taken (deleted rooms keep their name)."""
        pass

    @abstractmethod
    async def get_member(self, room_id: int, user_pseudo: str, for_update: bool = False) -> RoomMember | None:
        """Get a single membership row."""
        pass

    @abstractmethod
    async def get_members(self, room_id: int) -> list[RoomMember]:
        """Get the room roster ordered by join time."""
        pass

    @abstractmethod
    async def add_member(self, member: RoomMember) -> RoomMember:
        """Insert a membership row."""
        pass

    @abstractmethod
    async def remove_member(self, member: RoomMember) -> None:
        """Delete a membership row."""
        pass

    @abstractmethod
    async def remove_all_members(self, room_id: int) -> int:
        """Delete every membership row of a room."""
        pass

    @abstractmethod
    async def count_members(self, room_id: int) -> int:
        """Count live roster rows of a room."""
        pass

    @abstractmethod
    async def get_user_rooms(self, user_pseudo: str) -> list[tuple[Room, RoomMember]]:
        """Get non-deleted rooms a pseudo belongs to, with the membership row."""
        pass

    @abstractmethod
    async def record_post(self, member: RoomMember, posted_at: datetime) -> RoomMember:
        """Stamp last_post_at and bump post_count on a membership row."""
        pass

    @abstractmethod
    async def record_view(self, room_id: int, user_pseudo: str, viewed_at: datetime) -> bool:
        """Stamp last_view_at on a membership row."""
        pass


class RoomRepository(IRoomRepository):
    """SQLAlchemy implementation of Room repository."""

    def __init__(self, db: AsyncSession):
        """
        Initialize with async database session.
        :param db: SQLAlchemy async database session
        """
        super().__init__(db)

    async def get_by_id(self, id: int) -> Room | None:
        """Get non-deleted room by ID."""
        query = select(Room).where(and_(Room.id == id, Room.deleted_at.is_(None)))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_id_for_update(self, room_id: int) -> Room | None:
        query = (
            select(Room)
            .where(and_(Room.id == room_id, Room.deleted_at.is_(None)))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_all(self, limit: int = 100, offset: int = 0) -> list[Room]:
        """Get all rooms with pagination."""
        query = select(Room).order_by(Room.id).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_active_rooms(self) -> list[Room]:
        query = (
            select(Room)
            .where(
                and_(
                    Room.status == RoomStatus.ACTIVE,
                    Room.deleted_at.is_(None),
                    Room.is_locked.is_(False),
                )
            )
            .order_by(Room.member_count.desc(), Room.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_rooms_by_status(self, statuses: list[RoomStatus]) -> list[Room]:
        query = (
            select(Room)
            .where(and_(Room.status.in_(statuses), Room.deleted_at.is_(None)))
            .order_by(Room.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_live_room_ids(self) -> list[int]:
        query = select(Room.id).where(Room.deleted_at.is_(None)).order_by(Room.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def name_exists(self, name: str) -> bool:
        query = select(func.count(Room.id)).where(Room.name == name)
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def create(self, room: Room) -> Room:
        """Stage new room and assign its ID."""
        self.db.add(room)
        await self.db.flush()
        return room

    async def exists(self, id: int) -> bool:
        room = await self.get_by_id(id)
        return room is not None

    async def get_member(self, room_id: int, user_pseudo: str, for_update: bool = False) -> RoomMember | None:
        query = select(RoomMember).where(
            and_(RoomMember.room_id == room_id, RoomMember.user_pseudo == user_pseudo)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_members(self, room_id: int) -> list[RoomMember]:
        query = (
            select(RoomMember)
            .where(RoomMember.room_id == room_id)
            .order_by(RoomMember.joined_at.asc(), RoomMember.user_pseudo.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def add_member(self, member: RoomMember) -> RoomMember:
        self.db.add(member)
        await self.db.flush()
        return member

    async def remove_member(self, member: RoomMember) -> None:
        await self.db.delete(member)
        await self.db.flush()

    async def remove_all_members(self, room_id: int) -> int:
        result = await self.db.execute(delete(RoomMember).where(RoomMember.room_id == room_id))
        return result.rowcount or 0

    async def count_members(self, room_id: int) -> int:
        query = select(func.count()).select_from(RoomMember).where(RoomMember.room_id == room_id)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def get_user_rooms(self, user_pseudo: str) -> list[tuple[Room, RoomMember]]:
        query = (
            select(Room, RoomMember)
            .join(RoomMember, RoomMember.room_id == Room.id)
            .where(and_(RoomMember.user_pseudo == user_pseudo, Room.deleted_at.is_(None)))
            .order_by(RoomMember.joined_at.desc())
        )
        result = await self.db.execute(query)
        return [(room, member) for room, member in result.all()]

    async def record_post(self, member: RoomMember, posted_at: datetime) -> RoomMember:
        member.last_post_at = posted_at
        member.post_count = (member.post_count or 0) + 1
        await self.db.flush()
        return member

    async def record_view(self, room_id: int, user_pseudo: str, viewed_at: datetime) -> bool:
        query = (
            update(RoomMember)
            .where(and_(RoomMember.room_id == room_id, RoomMember.user_pseudo == user_pseudo))
            .values(last_view_at=viewed_at)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(query)
        return (result.rowcount or 0) > 0
