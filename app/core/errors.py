"""Error hierarchy for the pairing backend.

Every failure the API reports is an AppError carrying a stable code, a
category and the HTTP status it maps to. Messages are written for end users;
storage details stay in the logs.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    BUSINESS_RULE = "business_rule"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


class AppError(Exception):
    """Base exception for every error surfaced through the API."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.http_status = http_status

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
            }
        }


# ─── Client errors ──────────────────────────────────────────────

class InvalidInputError(AppError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, "VALIDATION_ERROR", ErrorCategory.VALIDATION, 400)
        self.field = field


class UploadTooLargeError(AppError):
    def __init__(self, max_bytes: int):
        super().__init__(
            "That image is too large. Please pick a smaller one.",
            "UPLOAD_TOO_LARGE", ErrorCategory.VALIDATION, 413,
        )
        self.max_bytes = max_bytes


class AuthenticationError(AppError):
    def __init__(self, message: str = "Your session has expired. Please log in again."):
        super().__init__(message, "AUTHENTICATION_FAILED", ErrorCategory.AUTHENTICATION, 401)


class InvalidCredentialsError(AppError):
    def __init__(self):
        super().__init__(
            "Invalid email or password.",
            "INVALID_CREDENTIALS", ErrorCategory.AUTHENTICATION, 401,
        )


class EmailAlreadyRegisteredError(AppError):
    def __init__(self):
        super().__init__(
            "This email is already registered.",
            "EMAIL_ALREADY_REGISTERED", ErrorCategory.CONFLICT, 409,
        )


class InviteNotFoundError(AppError):
    """Preview of a code that matches no couple at all."""
    def __init__(self):
        super().__init__(
            "Invite not found. Check that the code is correct.",
            "INVITE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND, 404,
        )


class InviteAlreadyUsedError(AppError):
    """Preview of a code whose couple is already full."""
    def __init__(self):
        super().__init__(
            "This invite has already been used by someone else.",
            "INVITE_ALREADY_USED", ErrorCategory.CONFLICT, 409,
        )


class InvalidInviteCodeError(AppError):
    """Pairing against a code with no waiting couple behind it."""
    def __init__(self):
        super().__init__(
            "That code is invalid or has already been used.",
            "INVITE_CODE_INVALID", ErrorCategory.RESOURCE_NOT_FOUND, 404,
        )


class NoActiveInviteError(AppError):
    def __init__(self):
        super().__init__(
            "No active invite found. Please complete onboarding first.",
            "NO_ACTIVE_INVITE", ErrorCategory.RESOURCE_NOT_FOUND, 404,
        )


class SelfPairingError(AppError):
    def __init__(self):
        super().__init__(
            "You cannot join your own invite. Send this code to your partner!",
            "SELF_PAIRING", ErrorCategory.CONFLICT, 409,
        )


class AlreadyPairedError(AppError):
    def __init__(self):
        super().__init__(
            "You are already paired. Unlink first.",
            "ALREADY_PAIRED", ErrorCategory.CONFLICT, 409,
        )


class NotPairedError(AppError):
    def __init__(self, message: str = "Not in a relationship."):
        super().__init__(message, "NOT_PAIRED", ErrorCategory.BUSINESS_RULE, 400)


class StorageConflictError(AppError):
    """Uniqueness or foreign-key violation not classified more precisely."""
    def __init__(self):
        super().__init__(
            "This change conflicts with existing data. Please refresh and try again.",
            "STORAGE_CONFLICT", ErrorCategory.CONFLICT, 409,
        )


# ─── Server errors ──────────────────────────────────────────────

class DatabaseError(AppError):
    def __init__(self, operation: str):
        super().__init__(
            "Something went wrong on our end. Please try again.",
            "DATABASE_ERROR", ErrorCategory.DATABASE, 500,
        )
        self.operation = operation


class MediaGatewayError(AppError):
    def __init__(self, operation: str):
        super().__init__(
            "Failed to sync the shared picture. Please try again.",
            "MEDIA_GATEWAY_ERROR", ErrorCategory.EXTERNAL_API, 502,
        )
        self.operation = operation


class InviteCodeUnavailableError(AppError):
    def __init__(self, attempts: int):
        super().__init__(
            "We couldn't generate an invite code right now. Please try again.",
            "INVITE_CODE_UNAVAILABLE", ErrorCategory.INTERNAL, 503,
        )
        self.attempts = attempts


class SSONotConfiguredError(AppError):
    def __init__(self):
        super().__init__(
            "Google sign-in is not available.",
            "SSO_NOT_CONFIGURED", ErrorCategory.INTERNAL, 503,
        )
