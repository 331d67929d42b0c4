"""Error taxonomy shared by services, upstream clients and the HTTP layer.

Every error carries the HTTP status it surfaces as, so the API can map
any ``SlunchError`` to a ``{"message": ...}`` response without knowing
which component raised it.
"""
from __future__ import annotations

from typing import Optional

from slunch.constants import ERROR_MESSAGES


class SlunchError(Exception):
    status_code = 500
    default_message = ERROR_MESSAGES["UNKNOWN_ERROR"]

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SlunchError):
    """Malformed client input. Never retried."""

    status_code = 400


class UnauthorizedError(SlunchError):
    status_code = 403
    default_message = ERROR_MESSAGES["UNAUTHORIZED"]


class NotFoundError(SlunchError):
    """Entity or subscription absent, or upstream definitively has no data."""

    status_code = 404
    default_message = ERROR_MESSAGES["NO_DATA"]


class ConflictError(SlunchError):
    status_code = 409
    default_message = ERROR_MESSAGES["TOKEN_ALREADY_EXISTS"]


class UpstreamError(SlunchError):
    """Upstream answered with an error that is not worth retrying."""

    status_code = 502


class TransientUpstreamError(UpstreamError):
    """Timeout, connection reset or 5xx from an upstream provider."""

    status_code = 503
    default_message = ERROR_MESSAGES["UPSTREAM_UNAVAILABLE"]


class DeliveryError(Exception):
    """Push delivery failed; best-effort, logged by the dispatcher."""


class DeliveryInvalidTokenError(DeliveryError):
    """The push token is permanently invalid and its subscription should go."""
