from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import DEFAULT_POST_LIFETIME_DAYS, MAX_POST_TITLE_LENGTH, MAX_PSEUDO_LENGTH


class PostResponse(BaseModel):
    """
    Schema for post responses.
    """
    id: int
    room_id: int
    author_pseudo: str
    title: str
    content: str
    created_at: datetime
    expires_at: datetime | None = None
    lifetime_days: int | None = None
    is_pinned: bool
    is_expired: bool
    deleted_at: datetime | None = None
    extension_reason: str | None = None
    no_expire_reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PostCreate(BaseModel):
    author_pseudo: str = Field(min_length=1, max_length=MAX_PSEUDO_LENGTH)
    title: str = Field(min_length=1, max_length=MAX_POST_TITLE_LENGTH)
    content: str = Field(min_length=1)
    lifetime_days: int = Field(DEFAULT_POST_LIFETIME_DAYS, ge=1, le=3650)


class PostExtend(BaseModel):
    additional_days: int = Field(ge=1, le=3650)


class PostBulkExtend(BaseModel):
    post_ids: list[int] = Field(min_length=1)
    additional_days: int = Field(ge=1, le=3650)


class PostDisableExpiration(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class PostPin(BaseModel):
    is_pinned: bool


class ReplyCreate(BaseModel):
    author_pseudo: str = Field(min_length=1, max_length=MAX_PSEUDO_LENGTH)
    content: str = Field(min_length=1)


class ReplyResponse(BaseModel):
    id: int
    post_id: int
    author_pseudo: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostUpdateResult(BaseModel):
    """Result of an author-side post mutation. affected=False means nothing changed."""
    post_id: int
    affected: bool
    expires_at: datetime | None = None
    lifetime_days: int | None = None


class ExpiringPost(BaseModel):
    id: int
    room_id: int
    room_name: str
    author_pseudo: str
    title: str
    expires_at: datetime
    days_until_expiration: int


class ExpiringPostsGrouped(BaseModel):
    """An author's expiring posts bucketed by urgency."""
    expired: list[ExpiringPost] = Field(default_factory=list)
    today: list[ExpiringPost] = Field(default_factory=list)
    tomorrow: list[ExpiringPost] = Field(default_factory=list)
    this_week: list[ExpiringPost] = Field(default_factory=list)


class SweepReport(BaseModel):
    """Summary of one expiration sweep run."""
    started_at: datetime
    scanned: int = 0
    extended_post_ids: list[int] = Field(default_factory=list)
    expired_post_ids: list[int] = Field(default_factory=list)
    failed_post_ids: list[int] = Field(default_factory=list)
    skipped: int = 0
    replies_deleted: int = 0
    budget_exhausted: bool = False
    duration_ms: float = 0.0
