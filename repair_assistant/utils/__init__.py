"""Utility modules for the repair assistant.

- **errors** -- exception hierarchy rooted at RepairAssistantError.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
- **filenames** -- filename sanitizing and timestamped storage paths.
- **encoding** -- base64 payload decoding (plain or data URI).
- **request_info** -- client IP / user agent extraction from proxied requests.
"""

from repair_assistant.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    IndexingError,
    LLMError,
    NotFoundError,
    PayloadTooLargeError,
    PermissionDeniedError,
    PersistenceError,
    ProviderUnavailableError,
    RepairAssistantError,
    StorageError,
    ValidationError,
)
from repair_assistant.utils.filenames import sanitize_filename, timestamped_path
from repair_assistant.utils.logging import configure_logging, get_logger

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "IndexingError",
    "LLMError",
    "NotFoundError",
    "PayloadTooLargeError",
    "PermissionDeniedError",
    "PersistenceError",
    "ProviderUnavailableError",
    "RepairAssistantError",
    "StorageError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "sanitize_filename",
    "timestamped_path",
]
