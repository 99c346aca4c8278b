from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.repositories.post_repository import IPostRepository, PostRepository
from app.repositories.room_repository import IRoomRepository, RoomRepository


def get_room_repository(db: AsyncSession = Depends(get_db)) -> IRoomRepository:
    """
    Create RoomRepository instance with database session.
    :param db: Database session from get_db dependency
    :return: RoomRepository instance
    """
    return RoomRepository(db)


def get_post_repository(db: AsyncSession = Depends(get_db)) -> IPostRepository:
    """
    Create PostRepository instance with database session.
    :param db: Database session from get_db dependency
    :return: PostRepository instance
    """
    return PostRepository(db)
