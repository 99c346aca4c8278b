"""
Domain exceptions for the room and post lifecycle engine.

Services raise these instead of HTTP errors; ``main.py`` maps each category
to a status code so the engine stays usable from workers and scripts.
"""


class DomainException(Exception):
    """Base class for all domain errors."""

    error_code = "domain_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundException(DomainException):
    error_code = "not_found"


class ValidationException(DomainException):
    error_code = "validation_error"


class ForbiddenException(DomainException):
    error_code = "forbidden"


class ConflictException(DomainException):
    error_code = "conflict"


class RoomNotFoundException(NotFoundException):
    error_code = "room_not_found"

    def __init__(self, room_id: int):
        self.room_id = room_id
        super().__init__(f"Room with id {room_id} not found")


class PostNotFoundException(NotFoundException):
    error_code = "post_not_found"

    def __init__(self, post_id: int):
        self.post_id = post_id
        super().__init__(f"Post with id {post_id} not found")


class InsufficientMembersException(ValidationException):
    error_code = "insufficient_members"

    def __init__(self, total: int, required: int):
        self.total = total
        self.required = required
        super().__init__(f"A minimum of {required} people is required to create a room (got {total})")


class AlreadyMemberException(ConflictException):
    error_code = "already_member"

    def __init__(self, room_id: int, user_pseudo: str):
        self.room_id = room_id
        self.user_pseudo = user_pseudo
        super().__init__(f"User '{user_pseudo}' is already a member of room {room_id}")


class NotMemberException(ForbiddenException):
    error_code = "not_member"

    def __init__(self, room_id: int, user_pseudo: str):
        self.room_id = room_id
        self.user_pseudo = user_pseudo
        super().__init__(f"User '{user_pseudo}' is not a member of room {room_id}")


class DuplicateMembersException(ValidationException):
    error_code = "duplicate_members"

    def __init__(self, duplicates: list[str]):
        self.duplicates = duplicates
        super().__init__(f"Founding roster lists these pseudos more than once: {', '.join(duplicates)}")


class DuplicateResourceException(ConflictException):
    error_code = "duplicate_resource"

    def __init__(self, resource: str, name: str):
        super().__init__(f"{resource} '{name}' already exists")


class InvalidRoomTransitionException(ConflictException):
    error_code = "invalid_room_transition"

    def __init__(self, current_status: str, event: str):
        self.current_status = current_status
        self.event = event
        super().__init__(f"Cannot apply '{event}' to a room in status '{current_status}'")


class TransactionFailureException(DomainException):
    error_code = "transaction_failure"
