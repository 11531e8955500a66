"""Instagram OAuth 2.0 flow implementation via Facebook Login.

Uses the Meta Graph API for Instagram Professional accounts (Business or Creator).
"""

from urllib.parse import urlencode

import httpx

from social_publisher.adapters.http import safe_json
from social_publisher.adapters.publisher.oauth import OAuthError, OAuthProvider
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import OAuthTokens, PlatformCredentials
from social_publisher.logging import get_logger

logger = get_logger(__name__)

# Meta/Facebook OAuth endpoints
GRAPH_API_VERSION = "v18.0"
FACEBOOK_AUTH_URL = f"https://www.facebook.com/{GRAPH_API_VERSION}/dialog/oauth"
FACEBOOK_TOKEN_URL = f"https://graph.facebook.com/{GRAPH_API_VERSION}/oauth/access_token"
GRAPH_API_URL = f"https://graph.facebook.com/{GRAPH_API_VERSION}"

# Required scopes for Instagram Reels publishing
INSTAGRAM_SCOPES = [
    "instagram_basic",
    "instagram_content_publish",
    "pages_show_list",
    "pages_read_engagement",
]

LONG_LIVED_TOKEN_SECONDS = 5184000  # 60 days


class InstagramOAuthProvider(OAuthProvider):
    """Facebook Login flow yielding a long-lived Instagram Graph API token."""

    @property
    def platform(self) -> Platform:
        return Platform.INSTAGRAM

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
            "scope": ",".join(INSTAGRAM_SCOPES),
        }
        if state:
            params["state"] = state

        return f"{FACEBOOK_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(
        self,
        credentials: PlatformCredentials,
        code: str,
        redirect_uri: str,
    ) -> OAuthTokens:
        # Step 1: Exchange code for short-lived token
        response = await self._request(
            "GET",
            FACEBOOK_TOKEN_URL,
            params={
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "redirect_uri": redirect_uri,
                "code": code,
            },
        )
        data = self._token_payload(response, "Token exchange")

        # Step 2: Exchange for long-lived token
        try:
            long_lived = await self._exchange_long_lived(credentials, data["access_token"])
        except OAuthError as e:
            logger.warning("instagram_long_lived_token_failed", error=str(e))
            long_lived = OAuthTokens(
                access_token=data["access_token"],
                expires_in=data.get("expires_in"),
            )

        # Step 3: Find the Instagram Business account behind the user's Pages
        account_id = await self._get_instagram_account_id(long_lived.access_token)

        return OAuthTokens(
            access_token=long_lived.access_token,
            expires_in=long_lived.expires_in,
            token_type=data.get("token_type", "bearer"),
            account_id=account_id,
        )

    async def refresh(self, credentials: PlatformCredentials) -> OAuthTokens:
        """Long-lived tokens are refreshed by exchanging them again before expiry."""
        if not credentials.access_token:
            raise OAuthError("No Instagram token to refresh. Please reconnect the account.")

        tokens = await self._exchange_long_lived(credentials, credentials.access_token)
        return OAuthTokens(
            access_token=tokens.access_token,
            expires_in=tokens.expires_in,
            account_id=credentials.account_id,
        )

    async def _exchange_long_lived(
        self,
        credentials: PlatformCredentials,
        access_token: str,
    ) -> OAuthTokens:
        response = await self._request(
            "GET",
            FACEBOOK_TOKEN_URL,
            params={
                "grant_type": "fb_exchange_token",
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "fb_exchange_token": access_token,
            },
        )
        data = self._token_payload(response, "Long-lived token exchange")
        return OAuthTokens(
            access_token=data["access_token"],
            expires_in=data.get("expires_in", LONG_LIVED_TOKEN_SECONDS),
        )

    async def _get_instagram_account_id(self, access_token: str) -> str | None:
        """Return the first Instagram Business account linked to a Facebook Page."""
        try:
            response = await self._request(
                "GET",
                f"{GRAPH_API_URL}/me/accounts",
                params={
                    "access_token": access_token,
                    "fields": "id,name,instagram_business_account{id,username}",
                },
            )
        except httpx.HTTPError as e:
            logger.warning("instagram_pages_lookup_failed", error=str(e) or type(e).__name__)
            return None

        if response.status_code != 200:
            logger.warning("instagram_pages_lookup_failed", status_code=response.status_code)
            return None

        for page in (safe_json(response) or {}).get("data", []):
            ig_account = page.get("instagram_business_account")
            if ig_account:
                return ig_account["id"]

        logger.warning("instagram_business_account_missing")
        return None
