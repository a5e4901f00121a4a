"""Domain errors raised by the chat services."""

from typing import List, Optional


class ChatError(Exception):
    """Base class for errors the gateway turns into response outcomes."""

    code = "chat_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationFailed(ChatError):
    """Request payload is malformed or incomplete."""

    code = "validation_failed"

    def __init__(self, details: Optional[List[str]] = None) -> None:
        self.details = details or []
        super().__init__("; ".join(self.details) or "Invalid request")


class NameTaken(ChatError):
    code = "name_taken"


class UnknownUser(ChatError):
    code = "unknown_user"


class NotFound(ChatError):
    code = "not_found"


class Forbidden(ChatError):
    code = "forbidden"


class MissingIdentity(ChatError):
    code = "missing_identity"


class StoreUnavailable(ChatError):
    """Backing store failed; nothing was mutated."""

    code = "store_unavailable"
