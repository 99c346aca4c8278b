"""
Test fixtures and utilities for the Support Rooms test suite.

- Unit tests: in-memory SQLite, mocked notification sink
- E2E tests: full API through httpx against the same schema
"""

from .factories import PostFactory, ReplyFactory, RoomFactory

__all__ = [
    "RoomFactory",
    "PostFactory",
    "ReplyFactory",
]
