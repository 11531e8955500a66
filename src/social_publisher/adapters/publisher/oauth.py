"""Base interface for platform OAuth 2.0 providers."""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from social_publisher.adapters.http import safe_json, send_with_retry
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import OAuthTokens, PlatformCredentials


class OAuthError(Exception):
    """Raised when an OAuth token exchange or refresh fails."""

    pass


class OAuthProvider(ABC):
    """Builds authorization URLs and talks to a platform's token endpoint.

    Implementations:
    - YouTubeOAuthProvider: Google OAuth 2.0
    - TikTokOAuthProvider: TikTok Login Kit v2
    - InstagramOAuthProvider: Facebook Login for the Instagram Graph API
    """

    def __init__(self, client: httpx.AsyncClient, max_attempts: int = 3) -> None:
        self.client = client
        self.max_attempts = max_attempts

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """The platform this provider authorizes."""
        ...

    @abstractmethod
    def build_authorization_url(
        self,
        credentials: PlatformCredentials,
        redirect_uri: str,
        state: str | None = None,
    ) -> str:
        """Build the URL the user is sent to for granting access."""
        ...

    @abstractmethod
    async def exchange_code(
        self,
        credentials: PlatformCredentials,
        code: str,
        redirect_uri: str,
    ) -> OAuthTokens:
        """Exchange an authorization code for tokens.

        Raises:
            OAuthError: If the platform rejects the exchange.
        """
        ...

    async def refresh(self, credentials: PlatformCredentials) -> OAuthTokens:
        """Obtain a fresh access token.

        Raises:
            OAuthError: If the platform does not support refresh or rejects it.
        """
        raise OAuthError(f"Token refresh is not supported for {self.platform.display_name}")

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return await send_with_retry(
            self.client, method, url, max_attempts=self.max_attempts, **kwargs
        )

    def _token_payload(self, response: httpx.Response, action: str) -> dict[str, Any]:
        """Validate a token endpoint response and return its JSON body."""
        data = safe_json(response)

        if response.status_code != 200 or data is None:
            raise OAuthError(f"{action} failed: {_describe_error(data, response.text)}")

        if "error" in data and "access_token" not in data:
            raise OAuthError(f"{action} failed: {_describe_error(data, response.text)}")

        if not data.get("access_token"):
            raise OAuthError(f"{action} failed: no access token in response")

        return data


def _describe_error(data: dict[str, Any] | None, fallback: str) -> str:
    if not data:
        return fallback
    error = data.get("error")
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or fallback)
    return str(data.get("error_description") or error or fallback)
