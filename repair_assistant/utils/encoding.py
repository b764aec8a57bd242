"""Base64 payload decoding for JSON request bodies carrying media."""

from __future__ import annotations

import base64
import binascii

from repair_assistant.utils.errors import ValidationError


def decode_base64_payload(payload: str) -> bytes:
    """Decode plain base64 or a ``data:<mime>;base64,`` URI.

    Raises
    ------
    ValidationError
        If the payload is not valid base64.
    """
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(message="Payload is not valid base64") from exc
