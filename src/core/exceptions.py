"""Custom exception classes for the content licensing platform.

This module defines application-specific exceptions following Google Python
Style Guide. Managers raise these; route handlers translate them to HTTP
responses.
"""


class ContentPlatformError(Exception):
    """Base exception for all content platform errors."""

    pass


class ConflictError(ContentPlatformError):
    """Raised when a unique key is already taken."""

    pass


class UserAlreadyExistsError(ConflictError):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str):
        """Initialize the exception.

        Args:
            email: The normalized email that is already registered.
        """
        self.email = email
        super().__init__(f"An account with email '{email}' already exists")


class UnauthenticatedError(ContentPlatformError):
    """Raised when a bearer token is missing, unknown or expired."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class InvalidCredentialsError(UnauthenticatedError):
    """Raised when an email/password pair does not match."""

    def __init__(self):
        super().__init__("Invalid email or password")


class AccessDeniedError(ContentPlatformError):
    """Raised when a valid identity is not entitled to a content item."""

    def __init__(self, content_id: str):
        """Initialize the exception.

        Args:
            content_id: The ID of the content the caller may not access.
        """
        self.content_id = content_id
        super().__init__(f"Access to content '{content_id}' requires a purchase or subscription")


class NotFoundError(ContentPlatformError):
    """Base class for missing referenced entities."""

    pass


class UserNotFoundError(NotFoundError):
    """Raised when a requested user cannot be found."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")


class ContentNotFoundError(NotFoundError):
    """Raised when a requested content item cannot be found."""

    def __init__(self, content_id: str):
        """Initialize the exception.

        Args:
            content_id: The ID of the content that was not found.
        """
        self.content_id = content_id
        super().__init__(f"Content '{content_id}' not found")


class ArtifactNotFoundError(NotFoundError):
    """Raised when a stored file is missing from the artifact store."""

    def __init__(self, file_id: str):
        self.file_id = file_id
        super().__init__(f"File '{file_id}' not found")


class NoArtifactError(ContentPlatformError):
    """Raised when a content item exists but nothing was uploaded for it."""

    def __init__(self, content_id: str):
        self.content_id = content_id
        super().__init__(f"No file has been uploaded for content '{content_id}'")


class PlanNotFoundError(ContentPlatformError):
    """Raised when activating an unknown subscription plan."""

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Subscription plan '{plan_id}' not found")


class ValidationError(ContentPlatformError):
    """Raised when data validation fails."""

    pass
