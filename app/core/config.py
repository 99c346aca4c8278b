from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.constants import (
    DEFAULT_ACTIVITY_MIN_UNIQUE_POSTERS,
    DEFAULT_ACTIVITY_WINDOW_HOURS,
    DEFAULT_EXPIRING_NOTICE_DAYS,
    DEFAULT_POST_LIFETIME_DAYS,
    DEFAULT_ROOM_ACTIVATION_MEMBERS,
    DEFAULT_ROOM_MIN_MEMBERS,
    DEFAULT_SWEEP_ACTIVE_REPLY_THRESHOLD,
    DEFAULT_SWEEP_BATCH_SIZE,
    DEFAULT_SWEEP_EXTENSION_DAYS,
    DEFAULT_SWEEP_MAX_POSTS_PER_RUN,
    DEFAULT_SWEEP_REPLY_WINDOW_HOURS,
)


class Settings(BaseSettings):
    """Application settings"""

    database_url: str = "sqlite+aiosqlite:///./support_rooms.db"
    redis_url: str = "redis://localhost:6379"

    app_name: str = "Support Rooms"
    debug: bool = False

    log_level: str = "INFO"
    log_json: bool = False

    # Room lifecycle thresholds
    room_min_members: int = DEFAULT_ROOM_MIN_MEMBERS
    room_activation_members: int = DEFAULT_ROOM_ACTIVATION_MEMBERS

    # Activity monitoring
    activity_window_hours: int = DEFAULT_ACTIVITY_WINDOW_HOURS
    activity_min_unique_posters: int = DEFAULT_ACTIVITY_MIN_UNIQUE_POSTERS
    auto_lock_inactive_rooms: bool = False

    # Post expiration
    post_default_lifetime_days: int = DEFAULT_POST_LIFETIME_DAYS
    expiring_notice_days: int = DEFAULT_EXPIRING_NOTICE_DAYS

    # Expiration sweep
    sweep_active_reply_threshold: int = DEFAULT_SWEEP_ACTIVE_REPLY_THRESHOLD
    sweep_reply_window_hours: int = DEFAULT_SWEEP_REPLY_WINDOW_HOURS
    sweep_extension_days: int = DEFAULT_SWEEP_EXTENSION_DAYS
    sweep_batch_size: int = DEFAULT_SWEEP_BATCH_SIZE
    sweep_max_posts_per_run: int = DEFAULT_SWEEP_MAX_POSTS_PER_RUN
    sweep_cron_minute: int = 0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    @model_validator(mode="after")
    def check_room_thresholds(self) -> "Settings":
        """Activation threshold must not be below the survival threshold."""
        if self.room_activation_members < self.room_min_members:
            raise ValueError(
                f"room_activation_members ({self.room_activation_members}) "
                f"must be >= room_min_members ({self.room_min_members})"
            )
        if self.sweep_batch_size < 1:
            raise ValueError("sweep_batch_size must be >= 1")
        return self


settings = Settings()
