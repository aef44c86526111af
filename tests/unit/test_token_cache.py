"""Tests unitarios para el cache de tokens de acceso del partner."""

import pytest

from printbridge.clients.token_cache import AccessTokenCache
from printbridge.domain.models import AccessToken
from printbridge.utils.error_handler import AuthConfigError, TokenRequestError


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def oauth_settings(make_settings, partner):
    return make_settings(
        PARTNER_API_KEY=None,
        PARTNER_CLIENT_ID="client-abcd",
        PARTNER_CLIENT_SECRET="secret-wxyz",
        PARTNER_TOKEN_URL=partner.url("/oauth/token"),
    )


class TestAccessToken:
    """Tests para el value object AccessToken."""

    def test_token_fresh_before_margin(self):
        """Debe considerar fresco un token lejos de su expiración."""
        token = AccessToken(value="abc", expires_at=1_000.0)

        assert token.is_fresh(now=900.0, margin=60) is True
        assert token.is_fresh(now=950.0, margin=60) is False

    def test_token_without_expiry_is_always_fresh(self):
        """Debe considerar fresco un token sin expiración."""
        assert AccessToken(value="abc").is_fresh(now=10**9, margin=60) is True

    def test_repr_masks_value(self):
        """No debe exponer el valor del token en repr."""
        assert "abc" not in repr(AccessToken(value="abc", expires_at=1.0))


class TestAccessTokenCache:
    """Tests para AccessTokenCache."""

    @pytest.mark.asyncio
    async def test_preshared_token_skips_exchange(self, http_session, settings, partner):
        """Debe devolver la API key configurada sin llamar al endpoint de tokens."""
        cache = AccessTokenCache(http_session, settings)

        assert await cache.get_access_token() == "test-api-key-1234"
        assert cache.refresh_count == 0
        assert partner.calls == []

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_auth_config_error(self, http_session, make_settings, partner):
        """Debe fallar sin red si faltan client id, secret o token URL."""
        settings = make_settings(PARTNER_API_KEY=None, PARTNER_CLIENT_ID="client-abcd")
        cache = AccessTokenCache(http_session, settings)

        with pytest.raises(AuthConfigError) as exc_info:
            await cache.get_access_token()

        assert exc_info.value.missing == ["PARTNER_CLIENT_SECRET", "PARTNER_TOKEN_URL"]
        assert exc_info.value.status_code == 500
        assert partner.calls == []

    @pytest.mark.asyncio
    async def test_second_call_reuses_cached_token(self, http_session, oauth_settings, partner):
        """Debe hacer un solo intercambio para dos llamadas dentro de la vida del token."""
        partner.on("POST", "/oauth/token", (200, {"access_token": "tok-1", "expires_in": 3600}))
        clock = FakeClock()
        cache = AccessTokenCache(http_session, oauth_settings, clock=clock)

        first = await cache.get_access_token()
        clock.now += 100
        second = await cache.get_access_token()

        assert first == second == "tok-1"
        assert cache.refresh_count == 1
        assert partner.count("POST", "/oauth/token") == 1

    @pytest.mark.asyncio
    async def test_token_refreshed_inside_margin(self, http_session, oauth_settings, partner):
        """Debe renovar el token cuando faltan menos segundos que el margen."""
        partner.on(
            "POST",
            "/oauth/token",
            (200, {"access_token": "tok-1", "expires_in": 3600}),
            (200, {"access_token": "tok-2", "expires_in": 3600}),
        )
        clock = FakeClock()
        cache = AccessTokenCache(http_session, oauth_settings, clock=clock)

        assert await cache.get_access_token() == "tok-1"
        clock.now += 3600 - 30
        assert await cache.get_access_token() == "tok-2"

        assert cache.refresh_count == 2
        assert partner.count("POST", "/oauth/token") == 2

    @pytest.mark.asyncio
    async def test_exchange_sends_client_credentials_form(self, http_session, oauth_settings, partner):
        """Debe enviar grant_type=client_credentials como formulario."""
        partner.on("POST", "/oauth/token", (200, {"access_token": "tok-1"}))
        cache = AccessTokenCache(http_session, oauth_settings)

        await cache.get_access_token()

        call = partner.calls_to("POST", "/oauth/token")[0]
        assert call.content_type == "application/x-www-form-urlencoded"
        assert b"grant_type=client_credentials" in call.body
        assert b"client_id=client-abcd" in call.body

    @pytest.mark.asyncio
    async def test_missing_expires_in_uses_default_lifetime(self, http_session, oauth_settings, partner):
        """Debe usar TOKEN_DEFAULT_LIFETIME_SECONDS si no viene expires_in."""
        partner.on("POST", "/oauth/token", (200, {"access_token": "tok-1"}))
        clock = FakeClock(now=500.0)
        cache = AccessTokenCache(http_session, oauth_settings, clock=clock)

        await cache.get_access_token()

        assert cache.cached_token.expires_at == 500.0 + oauth_settings.TOKEN_DEFAULT_LIFETIME_SECONDS

    @pytest.mark.asyncio
    async def test_rejected_exchange_raises_token_request_error(self, http_session, oauth_settings, partner):
        """Debe lanzar TokenRequestError con status y cuerpo si el endpoint rechaza."""
        partner.on("POST", "/oauth/token", (401, {"error": "invalid_client"}))
        cache = AccessTokenCache(http_session, oauth_settings)

        with pytest.raises(TokenRequestError) as exc_info:
            await cache.get_access_token()

        assert exc_info.value.status == 401
        assert "invalid_client" in exc_info.value.body
        assert cache.cached_token is None

    @pytest.mark.asyncio
    async def test_response_without_access_token_raises(self, http_session, oauth_settings, partner):
        """Debe rechazar una respuesta 200 sin access_token."""
        partner.on("POST", "/oauth/token", (200, {"token_type": "bearer"}))
        cache = AccessTokenCache(http_session, oauth_settings)

        with pytest.raises(TokenRequestError):
            await cache.get_access_token()

    @pytest.mark.asyncio
    async def test_invalidate_forces_new_exchange(self, http_session, oauth_settings, partner):
        """Debe pedir un token nuevo después de invalidate()."""
        partner.on("POST", "/oauth/token", (200, {"access_token": "tok-1", "expires_in": 3600}))
        cache = AccessTokenCache(http_session, oauth_settings)

        await cache.get_access_token()
        cache.invalidate()
        await cache.get_access_token()

        assert partner.count("POST", "/oauth/token") == 2
