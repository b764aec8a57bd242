"""Client metadata extraction for interaction and login auditing."""

from __future__ import annotations

from starlette.requests import Request

from repair_assistant.models.chat import ClientInfo


def client_info(request: Request) -> ClientInfo:
    """Return the caller's IP address and user agent.

    Behind a proxy the first ``X-Forwarded-For`` hop is the client; then
    ``X-Real-IP``; then the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = forwarded.split(",")[0].strip() or request.headers.get("x-real-ip")
    if not ip and request.client is not None:
        ip = request.client.host
    return ClientInfo(
        ip_address=ip or None,
        user_agent=request.headers.get("user-agent"),
    )
