from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import MAX_PSEUDO_LENGTH, MAX_ROOM_NAME_LENGTH
from app.models.room import RoomStatus


class RoomResponse(BaseModel):
    """
    Schema for room responses.
    """
    id: int
    name: str
    created_by: str
    member_count: int
    status: RoomStatus
    activity_score: int
    last_activity_check: datetime | None = None
    is_locked: bool
    lock_reason: str | None = None
    created_at: datetime
    deleted_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RoomCreate(BaseModel):
    """
    Schema for creating a new room.
    Founder plus initial members must reach the founding threshold.
    """
    name: str = Field(min_length=1, max_length=MAX_ROOM_NAME_LENGTH)
    founder: str = Field(min_length=1, max_length=MAX_PSEUDO_LENGTH)
    initial_members: list[str] = Field(default_factory=list)


class MemberAdd(BaseModel):
    user_pseudo: str = Field(min_length=1, max_length=MAX_PSEUDO_LENGTH)


class RoomLock(BaseModel):
    reason: str | None = Field(None, max_length=500)


class MemberResponse(BaseModel):
    """Schema for one roster entry."""
    room_id: int
    user_pseudo: str
    joined_at: datetime
    is_founder: bool
    is_moderator: bool
    last_post_at: datetime | None = None
    last_view_at: datetime | None = None
    post_count: int

    model_config = ConfigDict(from_attributes=True)


class UserRoomResponse(BaseModel):
    """Room as seen from one member."""
    id: int
    name: str
    member_count: int
    status: RoomStatus
    is_locked: bool
    joined_at: datetime
    is_founder: bool
    is_moderator: bool
    last_post_at: datetime | None = None
    last_view_at: datetime | None = None


class MembershipChangeResult(BaseModel):
    """
    Outcome of add_member / remove_member.

    room_deleted is True only when the removal dropped the room below the
    survival threshold and the room was soft-deleted with all its content.
    """
    room_id: int
    user_pseudo: str
    member_count: int
    status: RoomStatus
    room_deleted: bool = False


class ActivityReport(BaseModel):
    room_id: int
    unique_posters: int
    meets_requirement: bool
    checked_at: datetime


class MemberCountReconciliation(BaseModel):
    room_id: int
    cached_count: int
    actual_count: int
    repaired: bool
