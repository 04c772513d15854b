"""Error taxonomy shared by the pipeline and the HTTP handlers.

Every error carries the HTTP status it maps to and a message that is safe to
show to API clients. Driver errors and provider payloads stay in the logs.
"""


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Authentication required"


class PermissionDenied(AppError):
    status_code = 403
    default_message = "Not enough permissions"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class LocationNotFound(NotFoundError):
    default_message = "Location not found"


class RateLimitExceeded(AppError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."

    def __init__(self, retry_after: int, message: str | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamUnavailable(AppError):
    default_message = "Upstream service unavailable"


class GenerationUnavailable(UpstreamUnavailable):
    default_message = "Text generation service unavailable"


class WeatherUnavailable(UpstreamUnavailable):
    default_message = "Weather service unavailable"


class StorageFailure(UpstreamUnavailable):
    default_message = "Failed to upload image"


class PersistenceFailure(AppError):
    default_message = "Failed to save record"
