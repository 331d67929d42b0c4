from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from slunch.config import Settings
from slunch.errors import DeliveryError, DeliveryInvalidTokenError

FCM_API_BASE = "https://fcm.googleapis.com/v1"
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"

# FCM error codes meaning the registration token will never work again
_INVALID_TOKEN_CODES = {"UNREGISTERED", "NOT_FOUND"}


class PushSender(ABC):
    @abstractmethod
    def send(self, token: str, title: str, body: str) -> None:
        """Deliver one notification.

        Raises:
            DeliveryInvalidTokenError: the token is permanently invalid.
            DeliveryError: any other delivery failure.
        """
        ...


def mask_token(token: str) -> str:
    return f"{token[:12]}..." if len(token) > 12 else token


def load_service_account(settings: Settings) -> Optional[Dict[str, Any]]:
    """Service account JSON from the env string, else from the key file."""
    if settings.fcm_service_account_key:
        return json.loads(settings.fcm_service_account_key)
    if settings.fcm_service_account_path and os.path.exists(settings.fcm_service_account_path):
        with open(settings.fcm_service_account_path, encoding="utf-8") as f:
            return json.load(f)
    return None


class FcmSender(PushSender):
    """Send notifications through the FCM HTTP v1 API (no firebase-admin)."""

    def __init__(self, service_account: Dict[str, Any], timeout: float = 10.0):
        from google.oauth2 import service_account as google_service_account

        self.project_id = service_account["project_id"]
        self.credentials = google_service_account.Credentials.from_service_account_info(
            service_account, scopes=[FCM_SCOPE]
        )
        self.client = httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["FcmSender"]:
        service_account = load_service_account(settings)
        if service_account is None:
            logger.warning("FCM service account not configured, push delivery disabled")
            return None
        return cls(service_account, timeout=settings.fcm_timeout)

    @property
    def url(self) -> str:
        return f"{FCM_API_BASE}/projects/{self.project_id}/messages:send"

    def _access_token(self) -> str:
        from google.auth.transport.requests import Request

        if not self.credentials.valid:
            self.credentials.refresh(Request())
        return self.credentials.token

    def send(self, token: str, title: str, body: str) -> None:
        payload = {
            "message": {
                "token": token,
                "notification": {"title": title, "body": body},
            }
        }

        try:
            headers = {"Authorization": f"Bearer {self._access_token()}"}
            response = self.client.post(self.url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._classify(e.response) from e
        except httpx.RequestError as e:
            raise DeliveryError(f"FCM request failed: {e}") from e
        except Exception as e:
            # 憑證更新失敗等
            raise DeliveryError(f"FCM send failed: {e}") from e

        logger.info(f"FCM notification sent to {mask_token(token)}")

    def _classify(self, response: httpx.Response) -> DeliveryError:
        status, details = "", []
        try:
            error = response.json().get("error", {})
            status = error.get("status", "")
            details = error.get("details", [])
            message = error.get("message", "")
        except ValueError:
            message = response.text

        codes = {d.get("errorCode") for d in details if isinstance(d, dict)}
        invalid = (
            response.status_code == 404
            or status in _INVALID_TOKEN_CODES
            or bool(codes & _INVALID_TOKEN_CODES)
            or (status == "INVALID_ARGUMENT" and "token" in message.lower())
        )
        text = f"FCM API error: {response.status_code} {status} - {message}"
        if invalid:
            return DeliveryInvalidTokenError(text)
        return DeliveryError(text)

    def close(self) -> None:
        self.client.close()
