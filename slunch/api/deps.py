from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Header, Request

from slunch.constants import ERROR_MESSAGES
from slunch.containers import AppContainer
from slunch.errors import UnauthorizedError, ValidationError


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def require_admin(request: Request, token: Optional[str] = Header(None)) -> None:
    """Admin routes take the admin key in a ``token`` header."""
    if not token:
        raise ValidationError(ERROR_MESSAGES["TOKEN_REQUIRED"])

    admin_key = get_container(request).settings.admin_api_key
    if not admin_key or not hmac.compare_digest(token, admin_key):
        raise UnauthorizedError()
