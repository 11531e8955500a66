"""Tests for the platform credential store."""

from pathlib import Path

from social_publisher.config import Settings
from social_publisher.domain.enums import Platform
from social_publisher.services.credentials import CredentialStore
from social_publisher.services.token_vault import TokenVault


def store_for(cfg: Settings, vault: TokenVault | None = None) -> CredentialStore:
    return CredentialStore(lambda: cfg, vault=vault)


class TestConfiguration:
    """Tests for configured/authorized reporting."""

    def test_unknown_platform(self, configured_settings):
        store = store_for(configured_settings)

        assert store.get("myspace") is None
        assert store.is_configured("myspace") is False
        assert store.is_authorized("myspace") is False

    def test_nothing_configured(self, make_settings):
        store = store_for(make_settings())

        assert store.list_configured_platforms() == []
        for platform in Platform:
            assert store.is_configured(platform) is False

    def test_listing_order_is_fixed(self, make_settings):
        store = store_for(
            make_settings(
                instagram_app_id="ig",
                instagram_app_secret="s",
                youtube_client_id="yt",
                youtube_client_secret="s",
            )
        )

        assert store.list_configured_platforms() == ["youtube", "instagram"]

    def test_listing_is_idempotent(self, configured_settings):
        store = store_for(configured_settings)

        assert store.list_configured_platforms() == store.list_configured_platforms()
        assert store.list_configured_platforms() == ["youtube", "tiktok", "instagram"]

    def test_lookup_is_case_insensitive(self, configured_settings):
        store = store_for(configured_settings)
        assert store.is_configured("YouTube") is True

    def test_facebook_aliases(self):
        cfg = Settings(_env_file=None, facebook_app_id="fb", facebook_app_secret="fs")
        store = store_for(cfg)

        assert store.is_configured(Platform.INSTAGRAM) is True

    def test_configured_but_not_authorized(self, configured_settings):
        store = store_for(configured_settings)

        assert store.is_configured(Platform.TIKTOK) is True
        assert store.is_authorized(Platform.TIKTOK) is False


class TestSetAccessToken:
    """Tests for runtime token updates."""

    def test_sets_token(self, configured_settings):
        store = store_for(configured_settings)

        assert store.set_access_token("youtube", "new-token", refresh_token="r", expires_in=3600)

        creds = store.get(Platform.YOUTUBE)
        assert creds.access_token == "new-token"
        assert creds.refresh_token == "r"
        assert creds.token_expires_at is not None
        assert store.is_authorized("youtube") is True

    def test_rejects_unknown_platform(self, configured_settings):
        store = store_for(configured_settings)
        assert store.set_access_token("myspace", "token") is False

    def test_rejects_unconfigured_platform(self, make_settings):
        store = store_for(make_settings())

        assert store.set_access_token("tiktok", "token") is False
        assert store.is_authorized("tiktok") is False

    def test_rejects_empty_token(self, configured_settings):
        store = store_for(configured_settings)
        assert store.set_access_token("tiktok", "") is False

    def test_token_survives_reload(self, configured_settings):
        store = store_for(configured_settings)
        store.set_access_token("tiktok", "runtime-token")

        assert store.reload() is True
        assert store.get("tiktok").access_token == "runtime-token"


class TestReload:
    """Tests for reloading from the configuration source."""

    def test_reload_picks_up_new_credentials(self, make_settings):
        current = {"cfg": make_settings()}
        store = CredentialStore(lambda: current["cfg"])
        assert store.is_configured("youtube") is False

        current["cfg"] = make_settings(youtube_client_id="yt", youtube_client_secret="s")

        assert store.reload() is True
        assert store.is_configured("youtube") is True

    def test_failed_reload_keeps_previous_state(self, configured_settings):
        calls = {"n": 0}

        def source() -> Settings:
            calls["n"] += 1
            if calls["n"] > 1:
                return Settings(_env_file=None, api_port="not-a-port")
            return configured_settings

        store = CredentialStore(source)

        assert store.reload() is False
        assert store.list_configured_platforms() == ["youtube", "tiktok", "instagram"]


class TestTokenVault:
    """Tests for persisting tokens across store instances."""

    def test_tokens_persist(self, configured_settings, cipher, tmp_path: Path):
        vault = TokenVault(tmp_path / "tokens.json", cipher)
        store = store_for(configured_settings, vault)
        store.set_access_token("instagram", "ig-long-lived", expires_in=5_184_000, account_id="42")

        restarted = store_for(configured_settings, TokenVault(tmp_path / "tokens.json", cipher))
        creds = restarted.get("instagram")

        assert creds.access_token == "ig-long-lived"
        assert creds.account_id == "42"
        assert creds.token_expires_at is not None

    def test_tokens_are_encrypted_on_disk(self, configured_settings, cipher, tmp_path: Path):
        path = tmp_path / "tokens.json"
        store = store_for(configured_settings, TokenVault(path, cipher))
        store.set_access_token("youtube", "plain-token-value")

        assert "plain-token-value" not in path.read_text()

    def test_unreadable_vault_is_ignored(self, configured_settings, cipher, tmp_path: Path):
        path = tmp_path / "tokens.json"
        path.write_text("{not json")

        store = store_for(configured_settings, TokenVault(path, cipher))

        assert store.is_configured("youtube") is True
        assert store.is_authorized("youtube") is False

    def test_vault_holding_a_list_is_ignored(self, configured_settings, cipher, tmp_path: Path):
        path = tmp_path / "tokens.json"
        path.write_text("[1, 2]")

        store = store_for(configured_settings, TokenVault(path, cipher))

        assert store.is_configured("youtube") is True
        assert store.is_authorized("youtube") is False

    def test_vault_entry_of_wrong_shape_is_ignored(
        self, configured_settings, cipher, tmp_path: Path
    ):
        path = tmp_path / "tokens.json"
        path.write_text('{"youtube": "x"}')

        store = store_for(configured_settings, TokenVault(path, cipher))

        assert store.is_authorized("youtube") is False

    def test_set_token_with_malformed_vault_keeps_runtime_token(
        self, configured_settings, cipher, tmp_path: Path
    ):
        path = tmp_path / "tokens.json"
        path.write_text("[1, 2]")
        store = store_for(configured_settings, TokenVault(path, cipher))

        assert store.set_access_token("tiktok", "runtime-token") is True
        assert store.get("tiktok").access_token == "runtime-token"
