"""
Error taxonomy
==============

Every failure the service layer raises derives from ``ChatNaoError`` and carries a
stable ``code`` tag. The HTTP layer turns these into ``{"error": <message>, "code": <tag>}``
bodies, so clients can branch on ``code`` instead of matching message strings.

Hierarchy
---------
- ValidationError         (validation_error)      missing/malformed input
- NoContent               (no_content)            nothing to summarize
- AuthError               (auth_error)
    * DuplicateEmail      (duplicate_email)
    * InvalidCredentials  (invalid_credentials)
- NotFoundError           (not_found)
    * ChatNotFound, SenderNotFound, RecipientNotFound, UserNotFound
- ExternalServiceError    (external_service_error)
    * RewriteFailed       (rewrite_failed)
- ConfigurationError      (configuration_error)   raised at startup only
"""

from typing import Optional


class ChatNaoError(Exception):
    """Base class for all application errors."""

    code = "error"
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(ChatNaoError):
    code = "validation_error"
    default_message = "Missing required fields"

    def __init__(self, message: Optional[str] = None, fields: Optional[list] = None):
        super().__init__(message)
        self.fields = fields or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body


class NoContent(ChatNaoError):
    code = "no_content"
    default_message = "No messages to summarize"


class AuthError(ChatNaoError):
    code = "auth_error"
    default_message = "Authentication failed"


class DuplicateEmail(AuthError):
    code = "duplicate_email"
    default_message = "Email is already in use"


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    default_message = "Invalid email or password"


class NotFoundError(ChatNaoError):
    code = "not_found"
    default_message = "Not found"


class ChatNotFound(NotFoundError):
    code = "chat_not_found"
    default_message = "Chat not found"


class SenderNotFound(NotFoundError):
    code = "sender_not_found"
    default_message = "Sender not found"


class RecipientNotFound(NotFoundError):
    code = "recipient_not_found"
    default_message = "Recipient not found"


class UserNotFound(NotFoundError):
    code = "user_not_found"
    default_message = "User not found"


class ExternalServiceError(ChatNaoError):
    code = "external_service_error"
    default_message = "External service call failed"


class RewriteFailed(ExternalServiceError):
    """Raised when the LLM rewrite/summarize call does not succeed.

    ``status`` holds the ``RewriteStatus`` value reported by the rewriter
    (``timeout``, ``quota_exceeded`` or ``transport_error``).
    """

    code = "rewrite_failed"
    default_message = "Message rewrite failed"

    def __init__(self, status: str, message: Optional[str] = None):
        super().__init__(message)
        self.status = status

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["status"] = self.status
        return body


class ConfigurationError(ChatNaoError):
    code = "configuration_error"
    default_message = "Invalid configuration"
