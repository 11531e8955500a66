"""YouTube OAuth 2.0 flow implementation (Google authorization code grant)."""

from urllib.parse import urlencode

import httpx

from social_publisher.adapters.http import safe_json
from social_publisher.adapters.publisher.oauth import OAuthError, OAuthProvider
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import OAuthTokens, PlatformCredentials
from social_publisher.logging import get_logger

logger = get_logger(__name__)

# Google OAuth endpoints
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
YOUTUBE_CHANNELS_URL = "https://www.googleapis.com/youtube/v3/channels"

# Manage account, upload videos, read channel data
YOUTUBE_SCOPES = [
    "https://www.googleapis.com/auth/youtube",
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/youtube.readonly",
]


class YouTubeOAuthProvider(OAuthProvider):
    """Google OAuth for YouTube Data API uploads."""

    @property
    def platform(self) -> Platform:
        return Platform.YOUTUBE

    def build_authorization_url(
        self,
        credentials: PlatformCredentials,
        redirect_uri: str,
        state: str | None = None,
    ) -> str:
        params = {
            "client_id": credentials.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(YOUTUBE_SCOPES),
            "access_type": "offline",
            "prompt": "consent",  # Force refresh token
            "include_granted_scopes": "true",
        }
        if state:
            params["state"] = state

        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(
        self,
        credentials: PlatformCredentials,
        code: str,
        redirect_uri: str,
    ) -> OAuthTokens:
        response = await self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
        )
        data = self._token_payload(response, "Token exchange")

        if "refresh_token" not in data:
            logger.warning(
                "youtube_no_refresh_token",
                hint="Revoke access at https://myaccount.google.com/permissions and reconnect",
            )

        channel_id = await self._get_channel_id(data["access_token"])

        return OAuthTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            token_type=data.get("token_type", "Bearer"),
            scope=data.get("scope", ""),
            account_id=channel_id,
        )

    async def refresh(self, credentials: PlatformCredentials) -> OAuthTokens:
        if not credentials.refresh_token:
            raise OAuthError("No YouTube refresh token available. Please reconnect the account.")

        response = await self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "refresh_token": credentials.refresh_token,
                "grant_type": "refresh_token",
            },
        )

        if response.status_code != 200:
            data = safe_json(response) or {}
            if data.get("error") == "invalid_grant":
                raise OAuthError(
                    "Refresh token is invalid or expired. Please reconnect your YouTube account."
                )

        data = self._token_payload(response, "Token refresh")

        return OAuthTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", credentials.refresh_token),
            expires_in=data.get("expires_in"),
            token_type=data.get("token_type", "Bearer"),
            scope=data.get("scope", ""),
            account_id=credentials.account_id,
        )

    async def _get_channel_id(self, access_token: str) -> str | None:
        """Look up the authorized user's channel; failures are not fatal."""
        try:
            response = await self._request(
                "GET",
                YOUTUBE_CHANNELS_URL,
                params={"part": "snippet", "mine": "true"},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            logger.warning("youtube_channel_lookup_failed", error=str(e) or type(e).__name__)
            return None

        if response.status_code != 200:
            logger.warning("youtube_channel_lookup_failed", status_code=response.status_code)
            return None

        items = (safe_json(response) or {}).get("items", [])
        return items[0]["id"] if items else None
