from fastapi import APIRouter, Depends, Query, status

from app.core.constants import DEFAULT_EXPIRING_NOTICE_DAYS, DEFAULT_USER_EXPIRING_WINDOW_DAYS
from app.schemas.post_schemas import (
    ExpiringPost,
    ExpiringPostsGrouped,
    PostBulkExtend,
    PostDisableExpiration,
    PostExtend,
    PostPin,
    PostResponse,
    PostUpdateResult,
    ReplyCreate,
    ReplyResponse,
    SweepReport,
)
from app.services.expiration_sweeper import ExpirationSweeper
from app.services.post_service import PostService
from app.services.service_dependencies import get_expiration_sweeper, get_post_service

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/expiring", response_model=list[ExpiringPost])
async def get_expiring_posts(
    days: int = Query(DEFAULT_EXPIRING_NOTICE_DAYS, ge=1, le=365),
    post_service: PostService = Depends(get_post_service),
) -> list[ExpiringPost]:
    """
    Get live posts expiring within the given number of days.
    :param days: Look-ahead window
    :param post_service: Service instance handling post logic
    :return: Posts ordered by expiry
    """
    return await post_service.get_expiring_posts(days)


@router.get("/expiring/{author_pseudo}", response_model=ExpiringPostsGrouped)
async def get_user_expiring_posts(
    author_pseudo: str,
    days: int = Query(DEFAULT_USER_EXPIRING_WINDOW_DAYS, ge=1, le=365),
    post_service: PostService = Depends(get_post_service),
) -> ExpiringPostsGrouped:
    """
    Get an author's expiring posts grouped by urgency.
    :param author_pseudo: Post author
    :param days: Look-ahead window
    :param post_service: Service instance handling post logic
    :return: Posts in expired, today, tomorrow and this_week buckets
    """
    return await post_service.get_user_expiring_posts(author_pseudo, days)


@router.post("/bulk-extend")
async def bulk_extend_expiration(
    extend_data: PostBulkExtend,
    post_service: PostService = Depends(get_post_service),
) -> dict:
    """
    Extend several posts at once. Posts without an expiry are left alone.
    :param extend_data: Post IDs and number of days
    :param post_service: Service instance handling post logic
    :return: Number of posts extended
    """
    extended = await post_service.bulk_extend_expiration(extend_data.post_ids, extend_data.additional_days)
    return {"extended": extended}


@router.post("/sweep", response_model=SweepReport)
async def run_sweep(
    sweeper: ExpirationSweeper = Depends(get_expiration_sweeper),
) -> SweepReport:
    """Run one expiry sweep immediately, outside the hourly schedule."""
    return await sweeper.run_sweep()


@router.post("/{post_id}/extend", response_model=PostUpdateResult)
async def extend_expiration(
    post_id: int,
    extend_data: PostExtend,
    post_service: PostService = Depends(get_post_service),
) -> PostUpdateResult:
    """
    Push a post's expiry back.
    :param post_id: ID of post
    :param extend_data: Number of days to add
    :param post_service: Service instance handling post logic
    :return: Whether the post was affected and its new expiry
    """
    return await post_service.extend_expiration(post_id, extend_data.additional_days)


@router.post("/{post_id}/disable-expiration", response_model=PostResponse)
async def disable_expiration(
    post_id: int,
    disable_data: PostDisableExpiration,
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    """
    Make a post permanent.
    :param post_id: ID of post
    :param disable_data: Reason for keeping the post
    :param post_service: Service instance handling post logic
    :return: Updated post
    """
    post = await post_service.disable_expiration(post_id, disable_data.reason)
    return PostResponse.model_validate(post)


@router.put("/{post_id}/pin", response_model=PostResponse)
async def set_pinned(
    post_id: int,
    pin_data: PostPin,
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    """Pin or unpin a post."""
    post = await post_service.set_pinned(post_id, pin_data.is_pinned)
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", response_model=PostResponse)
async def delete_post(
    post_id: int,
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    """Soft-delete a post."""
    post = await post_service.delete_post(post_id)
    return PostResponse.model_validate(post)


@router.post("/{post_id}/replies", response_model=ReplyResponse, status_code=status.HTTP_201_CREATED)
async def add_reply(
    post_id: int,
    reply_data: ReplyCreate,
    post_service: PostService = Depends(get_post_service),
) -> ReplyResponse:
    """
    Reply to a live post.
    :param post_id: ID of post
    :param reply_data: Author and content
    :param post_service: Service instance handling post logic
    :return: Created reply
    """
    reply = await post_service.add_reply(post_id, reply_data.author_pseudo, reply_data.content)
    return ReplyResponse.model_validate(reply)
