"""Error types raised by the services and turned into `{error}` responses."""


class NexusError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(NexusError):
    status_code = 400
    default_message = "Please fill in all fields"


class InvalidCredentials(NexusError):
    # Same message for unknown email and wrong password.
    status_code = 401
    default_message = "Invalid email or password"


class Unauthorized(NexusError):
    status_code = 401
    default_message = "Unauthorized"


class InsufficientCredits(NexusError):
    status_code = 402
    default_message = "Insufficient credits. Please contact an administrator for a top-up."


class NotFound(NexusError):
    status_code = 404
    default_message = "Not found"


class DuplicateEmail(NexusError):
    status_code = 409
    default_message = "This email is already registered"


class UpdateConflict(NexusError):
    status_code = 409
    default_message = "Concurrent update, please retry"


class ServiceUnavailable(NexusError):
    status_code = 500
    default_message = "Server API key not configured"


class ProviderError(NexusError):
    status_code = 500
    default_message = "AI service error"


class InvalidProviderResponse(NexusError):
    status_code = 500
    default_message = "AI returned invalid JSON format."
