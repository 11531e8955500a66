"""TikTok OAuth 2.0 flow implementation.

Uses TikTok Login Kit v2 and the Content Posting API scopes.
"""

from urllib.parse import urlencode

from social_publisher.adapters.publisher.oauth import OAuthError, OAuthProvider
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import OAuthTokens, PlatformCredentials

# TikTok OAuth endpoints
TIKTOK_AUTH_URL = "https://www.tiktok.com/v2/auth/authorize/"
TIKTOK_TOKEN_URL = "https://open.tiktokapis.com/v2/oauth/token/"

TIKTOK_SCOPES = [
    "user.info.basic",
    "video.upload",
    "video.publish",  # Required for Direct Post
]


class TikTokOAuthProvider(OAuthProvider):
    """TikTok Login Kit authorization code flow."""

    @property
    def platform(self) -> Platform:
        return Platform.TIKTOK

    def build_authorization_url(
        self,
        credentials: PlatformCredentials,
        redirect_uri: str,
        state: str | None = None,
    ) -> str:
        params = {
            "client_key": credentials.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": ",".join(TIKTOK_SCOPES),
        }
        if state:
            params["state"] = state

        return f"{TIKTOK_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(
        self,
        credentials: PlatformCredentials,
        code: str,
        redirect_uri: str,
    ) -> OAuthTokens:
        response = await self._request(
            "POST",
            TIKTOK_TOKEN_URL,
            data={
                "client_key": credentials.client_id,
                "client_secret": credentials.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        data = self._token_payload(response, "Token exchange")

        return OAuthTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in", 86400),  # 24 hours default
            token_type=data.get("token_type", "Bearer"),
            scope=data.get("scope", ""),
            account_id=data.get("open_id"),
        )

    async def refresh(self, credentials: PlatformCredentials) -> OAuthTokens:
        if not credentials.refresh_token:
            raise OAuthError("No TikTok refresh token available. Please reconnect the account.")

        response = await self._request(
            "POST",
            TIKTOK_TOKEN_URL,
            data={
                "client_key": credentials.client_id,
                "client_secret": credentials.client_secret,
                "grant_type": "refresh_token",
                "refresh_token": credentials.refresh_token,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        data = self._token_payload(response, "Token refresh")

        return OAuthTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", credentials.refresh_token),
            expires_in=data.get("expires_in", 86400),
            scope=data.get("scope", ""),
            account_id=data.get("open_id", credentials.account_id),
        )
