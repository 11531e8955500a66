"""Tests for authorization URLs and OAuth callback handling."""

import time
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from social_publisher.container import build_providers
from social_publisher.domain.enums import AuthorizationStatus, FailureReason, Platform
from social_publisher.services.authorization import (
    AuthorizationService,
    build_redirect_uri,
    is_loopback_origin,
)
from social_publisher.services.credentials import CredentialStore
from social_publisher.services.oauth_state import OAuthStateSigner
from social_publisher.services.token_vault import TokenVault


def token_endpoint(request: httpx.Request) -> httpx.Response:
    """Fake platform APIs answering token exchanges."""
    host = request.url.host
    if host == "oauth2.googleapis.com":
        return httpx.Response(
            200,
            json={
                "access_token": "ya29.fresh",
                "refresh_token": "1//refresh",
                "expires_in": 3599,
                "token_type": "Bearer",
            },
        )
    if host == "www.googleapis.com":
        return httpx.Response(200, json={"items": [{"id": "UC123"}]})
    if host == "open.tiktokapis.com":
        return httpx.Response(
            200,
            json={"access_token": "act.tiktok", "expires_in": 86400, "open_id": "open-1"},
        )
    return httpx.Response(404, json={"error": {"message": "unexpected call"}})


@pytest.fixture
def calls():
    return []


@pytest.fixture
def http_client(calls):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return token_endpoint(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def store(configured_settings):
    return CredentialStore(lambda: configured_settings)


@pytest.fixture
def service(store, http_client, cipher, configured_settings):
    return AuthorizationService(
        store,
        build_providers(http_client, configured_settings.model_copy(update={"http_max_retries": 1})),
        state_signer=OAuthStateSigner(cipher),
    )


def query(url: str) -> dict[str, list[str]]:
    return parse_qs(urlparse(url).query)


class TestRedirectUri:
    """Tests for callback URL construction."""

    @pytest.mark.parametrize(
        "origin",
        ["localhost", "localhost:5000", "127.0.0.1:8080", "[::1]:5000", "app.localhost:3000"],
    )
    def test_loopback_origins(self, origin):
        assert is_loopback_origin(origin) is True

    @pytest.mark.parametrize("origin", ["app.example.com", "example.com:443", "10.0.0.5"])
    def test_public_origins(self, origin):
        assert is_loopback_origin(origin) is False

    def test_loopback_uses_http(self):
        uri = build_redirect_uri(Platform.TIKTOK, "localhost:5000")
        assert uri == "http://localhost:5000/api/auth/tiktok/callback"

    def test_public_uses_https(self):
        uri = build_redirect_uri(Platform.YOUTUBE, "app.example.com")
        assert uri == "https://app.example.com/api/auth/youtube/callback"


class TestAuthorizationUrl:
    """Tests for get_authorization_url."""

    def test_youtube_url(self, service):
        """Test YouTube requests offline access for the configured client."""
        url = service.get_authorization_url("youtube", "app.example.com")

        assert url is not None
        assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert "redirect_uri=https%3A%2F%2Fapp.example.com%2Fapi%2Fauth%2Fyoutube%2Fcallback" in url

        params = query(url)
        assert params["client_id"] == ["yt-client"]
        assert params["access_type"] == ["offline"]
        assert params["prompt"] == ["consent"]
        assert params["response_type"] == ["code"]
        assert "https://www.googleapis.com/auth/youtube.upload" in params["scope"][0].split(" ")
        assert params["state"][0]

    def test_tiktok_url(self, service):
        url = service.get_authorization_url("tiktok", "localhost:5000")

        params = query(url)
        assert url.startswith("https://www.tiktok.com/v2/auth/authorize/")
        assert params["client_key"] == ["tt-key"]
        assert params["redirect_uri"] == ["http://localhost:5000/api/auth/tiktok/callback"]
        assert "video.upload" in params["scope"][0].split(",")

    def test_instagram_url(self, service):
        url = service.get_authorization_url("instagram", "app.example.com")

        params = query(url)
        assert "facebook.com" in urlparse(url).netloc
        assert params["client_id"] == ["ig-app"]
        assert "instagram_content_publish" in params["scope"][0].split(",")

    def test_unknown_platform(self, service):
        assert service.get_authorization_url("myspace", "app.example.com") is None

    def test_unconfigured_platform(self, make_settings, http_client, cipher):
        cfg = make_settings()
        service = AuthorizationService(
            CredentialStore(lambda: cfg),
            build_providers(http_client, cfg),
            state_signer=OAuthStateSigner(cipher),
        )

        for platform in Platform:
            assert service.get_authorization_url(platform.value, "app.example.com") is None

    def test_urls_are_isolated_per_platform(self, service):
        youtube = service.get_authorization_url("youtube", "app.example.com")
        tiktok = service.get_authorization_url("tiktok", "app.example.com")

        assert "tt-key" not in youtube
        assert "yt-client" not in tiktok


class TestHandleCallback:
    """Tests for the callback state machine."""

    def state_for(self, service, platform: str, origin: str = "app.example.com") -> str:
        url = service.get_authorization_url(platform, origin)
        return query(url)["state"][0]

    @pytest.mark.asyncio
    async def test_successful_exchange(self, service, store, calls):
        state = self.state_for(service, "youtube")

        outcome = await service.handle_callback("youtube", code="4/abc", state=state)

        assert outcome.succeeded is True
        assert outcome.status == AuthorizationStatus.TOKEN_EXCHANGED
        assert outcome.message == "YouTube successfully connected!"

        creds = store.get(Platform.YOUTUBE)
        assert creds.access_token == "ya29.fresh"
        assert creds.refresh_token == "1//refresh"
        assert creds.account_id == "UC123"

        token_request = calls[0]
        body = parse_qs(token_request.content.decode())
        assert body["code"] == ["4/abc"]
        assert body["redirect_uri"] == ["https://app.example.com/api/auth/youtube/callback"]

    @pytest.mark.asyncio
    async def test_access_denied(self, service, store, calls):
        """Test a denied consent leaves the store untouched."""
        outcome = await service.handle_callback("youtube", error="access_denied")

        assert outcome.status == AuthorizationStatus.DENIED
        assert "access_denied" in outcome.message
        assert store.is_authorized("youtube") is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_missing_code_and_error(self, service):
        outcome = await service.handle_callback("tiktok")

        assert outcome.status == AuthorizationStatus.FAILED
        assert outcome.failure_reason == FailureReason.INVALID_CALLBACK

    @pytest.mark.asyncio
    async def test_unknown_platform(self, service):
        outcome = await service.handle_callback("myspace", code="abc")

        assert outcome.status == AuthorizationStatus.FAILED
        assert outcome.failure_reason == FailureReason.UNSUPPORTED_PLATFORM

    @pytest.mark.asyncio
    async def test_missing_state_rejected(self, service, store):
        outcome = await service.handle_callback("tiktok", code="abc")

        assert outcome.failure_reason == FailureReason.INVALID_CALLBACK
        assert store.is_authorized("tiktok") is False

    @pytest.mark.asyncio
    async def test_state_for_other_platform_rejected(self, service, store):
        state = self.state_for(service, "youtube")

        outcome = await service.handle_callback("tiktok", code="abc", state=state)

        assert outcome.failure_reason == FailureReason.INVALID_CALLBACK
        assert store.is_authorized("tiktok") is False

    @pytest.mark.asyncio
    async def test_code_is_single_use(self, service, calls):
        first = await service.handle_callback(
            "tiktok", code="code-1", state=self.state_for(service, "tiktok")
        )
        second = await service.handle_callback(
            "tiktok", code="code-1", state=self.state_for(service, "tiktok")
        )

        assert first.succeeded is True
        assert second.status == AuthorizationStatus.FAILED
        assert second.failure_reason == FailureReason.PROVIDER_ERROR
        assert "already used" in second.message
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_exchange_failure(self, store, cipher, configured_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_grant"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = AuthorizationService(
            store,
            build_providers(client, configured_settings),
            state_signer=OAuthStateSigner(cipher),
        )
        state = self.state_for(service, "youtube")

        outcome = await service.handle_callback("youtube", code="bad", state=state)

        assert outcome.status == AuthorizationStatus.FAILED
        assert outcome.failure_reason == FailureReason.PROVIDER_ERROR
        assert store.is_authorized("youtube") is False

    @pytest.mark.asyncio
    async def test_transport_failure(self, store, cipher, configured_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = AuthorizationService(
            store,
            build_providers(client, configured_settings.model_copy(update={"http_max_retries": 1})),
            state_signer=OAuthStateSigner(cipher),
        )
        state = self.state_for(service, "tiktok")

        outcome = await service.handle_callback("tiktok", code="abc", state=state)

        assert outcome.failure_reason == FailureReason.PROVIDER_ERROR
        assert store.is_authorized("tiktok") is False

    @pytest.mark.asyncio
    async def test_platform_no_longer_configured(self, make_settings, http_client, cipher):
        current = {"cfg": make_settings(tiktok_client_key="k", tiktok_client_secret="s")}
        store = CredentialStore(lambda: current["cfg"])
        service = AuthorizationService(
            store,
            build_providers(http_client, current["cfg"]),
            state_signer=OAuthStateSigner(cipher),
        )
        state = self.state_for(service, "tiktok")

        current["cfg"] = make_settings()
        store.reload()

        outcome = await service.handle_callback("tiktok", code="abc", state=state)

        assert outcome.failure_reason == FailureReason.NOT_CONFIGURED

    @pytest.mark.asyncio
    async def test_state_optional_when_not_required(self, store, http_client, configured_settings):
        service = AuthorizationService(
            store,
            build_providers(http_client, configured_settings),
            require_state=False,
        )

        outcome = await service.handle_callback("tiktok", code="abc", caller_origin="localhost:5000")

        assert outcome.succeeded is True
        assert store.get("tiktok").account_id == "open-1"

    @pytest.mark.asyncio
    async def test_channel_lookup_failure_keeps_token(self, store, cipher, configured_settings):
        """Test an unreachable channel lookup does not discard a granted token."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "www.googleapis.com":
                raise httpx.ConnectError("connection reset", request=request)
            return token_endpoint(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = AuthorizationService(
            store,
            build_providers(client, configured_settings.model_copy(update={"http_max_retries": 1})),
            state_signer=OAuthStateSigner(cipher),
        )

        outcome = await service.handle_callback(
            "youtube", code="4/abc", state=self.state_for(service, "youtube")
        )

        assert outcome.succeeded is True
        creds = store.get("youtube")
        assert creds.access_token == "ya29.fresh"
        assert creds.account_id is None

    @pytest.mark.asyncio
    async def test_instagram_account_lookup_failure_keeps_token(
        self, store, cipher, configured_settings
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/me/accounts"):
                raise httpx.ConnectError("connection reset", request=request)
            if request.url.path.endswith("/oauth/access_token"):
                return httpx.Response(200, json={"access_token": "ig-token", "expires_in": 5184000})
            return httpx.Response(404)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = AuthorizationService(
            store,
            build_providers(client, configured_settings.model_copy(update={"http_max_retries": 1})),
            state_signer=OAuthStateSigner(cipher),
        )

        outcome = await service.handle_callback(
            "instagram", code="fb-code", state=self.state_for(service, "instagram")
        )

        assert outcome.succeeded is True
        assert store.get("instagram").access_token == "ig-token"

    @pytest.mark.asyncio
    async def test_connected_token_is_persisted(
        self, configured_settings, http_client, cipher, tmp_path
    ):
        path = tmp_path / "tokens.json"
        store = CredentialStore(lambda: configured_settings, vault=TokenVault(path, cipher))
        service = AuthorizationService(
            store,
            build_providers(http_client, configured_settings),
            state_signer=OAuthStateSigner(cipher),
        )

        await service.handle_callback(
            "tiktok", code="code-1", state=self.state_for(service, "tiktok")
        )

        restarted = CredentialStore(lambda: configured_settings, vault=TokenVault(path, cipher))
        assert restarted.get("tiktok").access_token == "act.tiktok"


class TestUsedCodes:
    """Tests for the redeemed-code ledger."""

    def test_ttl_follows_state_signer(self, store, http_client, cipher, configured_settings):
        service = AuthorizationService(
            store,
            build_providers(http_client, configured_settings),
            state_signer=OAuthStateSigner(cipher, ttl_seconds=120),
        )

        assert service.code_ttl_seconds == 120

    @pytest.mark.asyncio
    async def test_expired_codes_are_forgotten(self, service):
        stale = (Platform.TIKTOK, "stale-code")
        service._used_codes[stale] = time.time() - service.code_ttl_seconds - 1
        state = query(service.get_authorization_url("tiktok", "app.example.com"))["state"][0]

        outcome = await service.handle_callback("tiktok", code="code-2", state=state)

        assert outcome.succeeded is True
        assert stale not in service._used_codes
        assert (Platform.TIKTOK, "code-2") in service._used_codes
