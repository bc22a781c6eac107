# src/Services/push_notifier.py

"""
Expo Push Notifier

Sends push notifications to the mobile app through the Expo push API.
One HTTP POST per message; there are no retries and no receipt polling,
a failed delivery is reported to the caller as an exception.
"""

import requests
from typing import Any, Dict, Optional

from src.Core.config import settings

# --------------------------
# Expo Configuration
# --------------------------
EXPO_TOKEN_PREFIX = "ExponentPushToken"

EXPO_HEADERS = {
    "Accept": "application/json",
    "Accept-encoding": "gzip, deflate",
    "Content-Type": "application/json",
}


def is_expo_token(token: Optional[str]) -> bool:
    """True for tokens issued by Expo (``ExponentPushToken[...]``)."""
    return bool(token) and token.startswith(EXPO_TOKEN_PREFIX)


class ExpoPushNotifier:
    """
    Thin client for ``POST https://exp.host/--/api/v2/push/send``.

    Attributes:
        url: Expo push endpoint (EXPO_PUSH_URL)
        timeout: Request timeout in seconds (EXPO_TIMEOUT_S)
    """

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url or settings.EXPO_PUSH_URL
        self.timeout = settings.EXPO_TIMEOUT_S if timeout is None else timeout

    def send(
        self,
        to: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Deliver one notification.

        Returns:
            dict: Decoded Expo response body

        Raises:
            requests.RequestException: network failure or non-2xx answer
        """
        payload = {
            "to": to,
            "title": title,
            "body": body,
            "data": data or {},
        }
        response = requests.post(
            self.url,
            json=payload,
            headers=EXPO_HEADERS,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()


# --------------------------
# Global notifier instance
# --------------------------
push_notifier = ExpoPushNotifier()
