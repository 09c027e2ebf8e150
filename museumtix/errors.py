"""Domain error codes for the booking service.

Storage backends signal a missing row by returning ``None`` (or ``False`` for
deletes). The errors below cover the cases that cannot be expressed that way.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    TICKET_TYPE_NOT_FOUND = "TICKET_TYPE_NOT_FOUND"
    EXHIBITION_NOT_FOUND = "EXHIBITION_NOT_FOUND"
    CONVERSATION_NOT_FOUND = "CONVERSATION_NOT_FOUND"
    DUPLICATE_USER = "DUPLICATE_USER"
    INVALID_TICKET_STATE = "INVALID_TICKET_STATE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class TicketTypeNotFoundError(DomainError):
    """Raised when a ticket references a ticket type that does not exist."""

    def __init__(self, ticket_type_id) -> None:
        super().__init__(
            code=ErrorCode.TICKET_TYPE_NOT_FOUND,
            message="Ticket type not found",
        )
        object.__setattr__(self, "ticket_type_id", ticket_type_id)


class ExhibitionNotFoundError(DomainError):
    """Raised when a write references an exhibition that does not exist."""

    def __init__(self, exhibition_id) -> None:
        super().__init__(
            code=ErrorCode.EXHIBITION_NOT_FOUND,
            message="Exhibition not found",
        )
        object.__setattr__(self, "exhibition_id", exhibition_id)


class ConversationNotFoundError(DomainError):
    """Raised when a message targets an unknown conversation."""

    def __init__(self, conversation_id) -> None:
        super().__init__(
            code=ErrorCode.CONVERSATION_NOT_FOUND,
            message="Conversation not found",
        )
        object.__setattr__(self, "conversation_id", conversation_id)


class DuplicateUserError(DomainError):
    """Raised when a username or email is already taken."""

    def __init__(self, field: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_USER,
            message=f"{field.capitalize()} already exists",
        )
        object.__setattr__(self, "field", field)


class TicketStateError(DomainError):
    """Raised when a lifecycle transition is invalid for the ticket's state."""

    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TICKET_STATE,
            message=message,
        )


NOT_FOUND_CODES = {
    ErrorCode.TICKET_TYPE_NOT_FOUND,
    ErrorCode.EXHIBITION_NOT_FOUND,
    ErrorCode.CONVERSATION_NOT_FOUND,
}
