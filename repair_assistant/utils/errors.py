"""Exception hierarchy for the repair assistant.

All application exceptions inherit from :class:`RepairAssistantError`,
which carries an optional ``provider_name`` so handlers can tell which
external collaborator (e.g. "openai", "supabase_storage", "sqlite")
caused the failure.

    RepairAssistantError  (base)
    +-- LLMError                 (completion / vision / speech call failed)
    +-- IndexingError            (vector index upload, polling or search)
    +-- StorageError             (object storage upload / download / delete)
    +-- PersistenceError         (relational store read or write failed)
    +-- ProviderUnavailableError (external service not configured or down)
    +-- ConfigurationError       (startup / missing config)
    +-- AuthenticationError      (missing or invalid bearer token)
    +-- PermissionDeniedError    (authenticated but not allowed)
    +-- NotFoundError            (entity does not exist)
    +-- ValidationError          (request data rejected by a service)
    +-- PayloadTooLargeError     (upload over the size limit)

The API error middleware maps the last five onto 401/403/404/400/413; every
other subclass becomes a 500 with a sanitized body.
"""


class RepairAssistantError(Exception):
    """Base exception for all repair assistant errors.

    ``__str__`` prefixes the provider name in brackets for log scanning,
    e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# External collaborator errors
# ---------------------------------------------------------------------------

class LLMError(RepairAssistantError):
    """Raised when an LLM, vision, transcription or speech API call fails."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IndexingError(RepairAssistantError):
    """Raised when a vector index operation fails."""

    def __init__(
        self,
        message: str = "Manual index operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(RepairAssistantError):
    """Raised when an object storage operation fails."""

    def __init__(
        self,
        message: str = "Object storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceError(RepairAssistantError):
    """Raised when a database read or write cannot be completed."""

    def __init__(
        self,
        message: str = "Database write failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(RepairAssistantError):
    """Raised when an external service is not configured or unreachable."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(RepairAssistantError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Request-level errors (mapped to 4xx by the API middleware)
# ---------------------------------------------------------------------------

class AuthenticationError(RepairAssistantError):
    """Raised when a bearer token is missing, expired or invalid."""

    def __init__(
        self,
        message: str = "Authentication required",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PermissionDeniedError(RepairAssistantError):
    """Raised when the caller is authenticated but not allowed to act."""

    def __init__(
        self,
        message: str = "Permission denied",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(RepairAssistantError):
    """Raised when a brand, model, document, session or user does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ValidationError(RepairAssistantError):
    """Raised when a service rejects caller-supplied data (size, type, ...)."""

    def __init__(
        self,
        message: str = "Invalid request data",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PayloadTooLargeError(RepairAssistantError):
    """Raised when an uploaded file exceeds the configured size limit."""

    def __init__(
        self,
        message: str = "Uploaded file is too large",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
