"""Repair assistant API layer: routes, schemas, dependencies and middleware."""

from repair_assistant.api.admin_routes import admin_router
from repair_assistant.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from repair_assistant.api.routes import router
from repair_assistant.api.schemas import ChatRequest, ChatResponse, ErrorResponse, HealthResponse

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "admin_router",
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "HealthResponse",
]
