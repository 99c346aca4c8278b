from fastapi import APIRouter, Depends, Query, status

from app.schemas.post_schemas import PostCreate, PostResponse
from app.schemas.room_schemas import (
    ActivityReport,
    MemberAdd,
    MemberCountReconciliation,
    MemberResponse,
    MembershipChangeResult,
    RoomCreate,
    RoomLock,
    RoomResponse,
    UserRoomResponse,
)
from app.services.post_service import PostService
from app.services.room_service import RoomService
from app.services.service_dependencies import get_post_service, get_room_service

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    room_data: RoomCreate,
    room_service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    """
    Create a new room with its founding members.
    :param room_data: Room name, founder and initial members
    :param room_service: Service instance handling room logic
    :return: Created room object
    """
    room = await room_service.create_room(
        name=room_data.name,
        founder=room_data.founder,
        initial_members=room_data.initial_members,
    )
    return RoomResponse.model_validate(room)


@router.get("/", response_model=list[RoomResponse])
async def get_active_rooms(
    room_service: RoomService = Depends(get_room_service),
) -> list[RoomResponse]:
    """
    Get all active, unlocked rooms.
    :param room_service: Service instance handling room logic
    :return: List of active rooms, largest first
    """
    rooms = await room_service.get_active_rooms()
    return [RoomResponse.model_validate(room) for room in rooms]


@router.get("/user/{user_pseudo}", response_model=list[UserRoomResponse])
async def get_user_rooms(
    user_pseudo: str,
    room_service: RoomService = Depends(get_room_service),
) -> list[UserRoomResponse]:
    """
    Get the rooms a pseudo belongs to.
    :param user_pseudo: Member pseudo
    :param room_service: Service instance handling room logic
    :return: Rooms with the caller's membership details
    """
    return await room_service.get_user_rooms(user_pseudo)


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room_by_id(
    room_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    """
    Get single room by ID.
    :param room_id: ID of room
    :param room_service: Service instance handling room logic
    :return: Room object
    """
    room = await room_service.get_room(room_id)
    return RoomResponse.model_validate(room)


@router.get("/{room_id}/members", response_model=list[MemberResponse])
async def get_room_members(
    room_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> list[MemberResponse]:
    """
    Get the room roster.
    :param room_id: ID of room
    :param room_service: Service instance handling room logic
    :return: Members ordered by join time
    """
    members = await room_service.get_members(room_id)
    return [MemberResponse.model_validate(member) for member in members]


@router.post("/{room_id}/members", response_model=MembershipChangeResult, status_code=status.HTTP_201_CREATED)
async def add_member(
    room_id: int,
    member_data: MemberAdd,
    room_service: RoomService = Depends(get_room_service),
) -> MembershipChangeResult:
    """
    Add a pseudo to the room.
    :param room_id: ID of room to join
    :param member_data: Joining pseudo
    :param room_service: Service instance handling room logic
    :return: New member count and room status
    """
    return await room_service.add_member(room_id, member_data.user_pseudo)


@router.delete("/{room_id}/members/{user_pseudo}", response_model=MembershipChangeResult)
async def remove_member(
    room_id: int,
    user_pseudo: str,
    room_service: RoomService = Depends(get_room_service),
) -> MembershipChangeResult:
    """
    Remove a pseudo from the room. May delete the room.
    :param room_id: ID of room
    :param user_pseudo: Leaving pseudo
    :param room_service: Service instance handling room logic
    :return: New member count, status and whether the room was deleted
    """
    return await room_service.remove_member(room_id, user_pseudo)


@router.post("/{room_id}/view", status_code=status.HTTP_204_NO_CONTENT)
async def record_view(
    room_id: int,
    member_data: MemberAdd,
    room_service: RoomService = Depends(get_room_service),
) -> None:
    """Stamp the member's last view of the room."""
    await room_service.record_view(room_id, member_data.user_pseudo)


@router.post("/{room_id}/lock", response_model=RoomResponse)
async def lock_room(
    room_id: int,
    lock_data: RoomLock | None = None,
    room_service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    """
    Lock an active room.
    :param room_id: ID of room
    :param lock_data: Optional lock reason
    :param room_service: Service instance handling room logic
    :return: Locked room
    """
    reason = lock_data.reason if lock_data else None
    room = await room_service.lock_room(room_id, reason)
    return RoomResponse.model_validate(room)


@router.post("/{room_id}/unlock", response_model=RoomResponse)
async def unlock_room(
    room_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    """
    Unlock a locked room.
    :param room_id: ID of room
    :param room_service: Service instance handling room logic
    :return: Unlocked room
    """
    room = await room_service.unlock_room(room_id)
    return RoomResponse.model_validate(room)


@router.post("/{room_id}/activity-check", response_model=ActivityReport)
async def check_room_activity(
    room_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> ActivityReport:
    """
    Measure unique posters over the activity window.
    :param room_id: ID of room
    :param room_service: Service instance handling room logic
    :return: Activity report
    """
    return await room_service.check_activity(room_id)


@router.post("/{room_id}/reconcile", response_model=MemberCountReconciliation)
async def reconcile_member_count(
    room_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> MemberCountReconciliation:
    """Recount the roster and repair the cached member count."""
    return await room_service.reconcile_member_count(room_id)


@router.get("/{room_id}/posts", response_model=list[PostResponse])
async def get_room_posts(
    room_id: int,
    include_expired: bool = Query(False),
    post_service: PostService = Depends(get_post_service),
) -> list[PostResponse]:
    """
    Get room posts, pinned first then newest first.
    :param room_id: ID of room
    :param include_expired: Include expired posts
    :param post_service: Service instance handling post logic
    :return: List of posts
    """
    posts = await post_service.get_room_posts(room_id, include_expired)
    return [PostResponse.model_validate(post) for post in posts]


@router.post("/{room_id}/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    room_id: int,
    post_data: PostCreate,
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    """
    Publish a post in a room.
    :param room_id: ID of room
    :param post_data: Author, title, content and lifetime
    :param post_service: Service instance handling post logic
    :return: Created post
    """
    post = await post_service.create_post(
        room_id=room_id,
        author_pseudo=post_data.author_pseudo,
        title=post_data.title,
        content=post_data.content,
        lifetime_days=post_data.lifetime_days,
    )
    return PostResponse.model_validate(post)
