"""
Google OAuth token refresh for connected calendars.
"""

from __future__ import annotations

import logging

import pendulum
import requests

from ..domain.exceptions import AuthenticationError
from ..domain.models import TokenGrant

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


class GoogleTokenRefresher:
    """
    Exchanges a stored refresh token for a new access token.

    Google access tokens expire after about an hour; the refresh token
    stored with the calendar connection stays valid until revoked.
    """

    TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"

    def __init__(self, client_id: str, client_secret: str, timeout: float = 10.0):
        """
        Initialize the refresher.

        Args:
            client_id: Google OAuth client ID
            client_secret: Google OAuth client secret
            timeout: Request timeout in seconds
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

    def refresh(self, refresh_token: str) -> TokenGrant:
        """
        Get a new access token.

        Raises:
            AuthenticationError: If the client is not configured or Google rejects the refresh
        """
        if not self.client_id or not self.client_secret:
            raise AuthenticationError("Google OAuth client is not configured")

        requested_at = pendulum.now("UTC")
        try:
            response = requests.post(
                self.TOKEN_ENDPOINT,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.RequestException as exc:
            raise AuthenticationError(f"Token refresh failed: {exc}") from exc
        except ValueError as exc:
            raise AuthenticationError(f"Token refresh returned invalid JSON: {exc}") from exc

        if "access_token" not in result:
            error = result.get("error_description") or result.get("error", "Unknown error")
            raise AuthenticationError(f"Token refresh failed: {error}")

        lifetime = result.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS
        logger.debug("Refreshed Google access token, valid for %s seconds", lifetime)

        return TokenGrant(
            access_token=result["access_token"],
            expires_at=requested_at.add(seconds=int(lifetime)),
        )
