"""
Custom exceptions for the matching engine.

Each error carries the HTTP status the route answers with.
"""


class RoomyAIError(Exception):
    """Base exception for matching engine errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(RoomyAIError):
    """Missing or invalid bearer token."""
    status_code = 401


class NotFoundError(RoomyAIError):
    """No student profile for the authenticated user."""
    status_code = 404


class RateLimitError(RoomyAIError):
    """Caller exceeded the request budget for the current window."""
    status_code = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after


class ValidationError(RoomyAIError):
    """Malformed mode, action or payload."""
    status_code = 400


class EnrichmentError(RoomyAIError):
    """LLM enrichment failed. Always recovered inside the pipeline."""
    pass
