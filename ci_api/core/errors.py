"""API error taxonomy. Every error renders to the same ``{"@type": "error", ...}`` envelope."""

from typing import Any


class ApiError(Exception):
    status_code: int = 500
    error_type: str = "error"
    default_message: str = "internal error"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "@type": "error",
            "error_type": self.error_type,
            "error_message": self.message,
        }
        payload.update(self.extra)
        return payload


class NotFoundError(ApiError):
    """Resource absent, or the caller may not see it. Both cases look the same to the client."""

    status_code = 404
    error_type = "not_found"

    def __init__(self, resource_type: str = "resource", message: str | None = None) -> None:
        self.resource_type = resource_type
        super().__init__(
            message or f"{resource_type} not found (or insufficient access)",
            resource_type=resource_type,
        )


class DomainValidationError(ApiError):
    status_code = 422
    error_type = "unprocessable_entity"
    default_message = "request could not be processed"


class AuthorizationError(ApiError):
    status_code = 403
    error_type = "insufficient_access"

    def __init__(self, permission: str, resource_type: str, message: str | None = None) -> None:
        self.permission = permission
        self.resource_type = resource_type
        super().__init__(
            message or f"operation requires {permission} access to {resource_type}",
            permission=permission,
            resource_type=resource_type,
        )


class ConflictError(ApiError):
    status_code = 409
    error_type = "conflict"

    def __init__(self, resource_type: str, message: str | None = None) -> None:
        self.resource_type = resource_type
        super().__init__(
            message or f"{resource_type} was modified concurrently, please retry",
            resource_type=resource_type,
        )


class WrongParamsError(ApiError):
    status_code = 400
    error_type = "wrong_params"
    default_message = "wrong parameters"


class InvalidTokenError(ApiError):
    status_code = 401
    error_type = "invalid_token"
    default_message = "invalid or expired access token"
