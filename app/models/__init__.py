from app.core.database import Base
from .room import Room, RoomStatus
from .room_member import RoomMember
from .room_post import RoomPost
from .post_reply import PostReply
from .user_notification import UserNotification

__all__ = [
    "Base",
    "Room",
    "RoomStatus",
    "RoomMember",
    "RoomPost",
    "PostReply",
    "UserNotification",
]
