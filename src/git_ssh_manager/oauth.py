"""Exchange OAuth authorization codes for access tokens with Git providers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from .config import settings
from .errors import ConfigurationError, UpstreamError, ValidationFailure

logger = logging.getLogger(__name__)

Provider = Literal["github", "bitbucket"]


@dataclass(frozen=True)
class ProviderEndpoint:
    label: str
    token_url: str


PROVIDERS: dict[str, ProviderEndpoint] = {
    "github": ProviderEndpoint("GitHub", "https://github.com/login/oauth/access_token"),
    "bitbucket": ProviderEndpoint("Bitbucket", "https://bitbucket.org/site/oauth2/access_token"),
}


def _json_body(response: httpx.Response) -> dict[str, Any]:
    """Decode a token endpoint response that must be a JSON object."""
    try:
        data = response.json()
    except ValueError as exc:
        logger.error("Token endpoint answered HTTP %s with a non-JSON body", response.status_code)
        raise UpstreamError("Failed to exchange code for token", details=response.text) from exc
    if not isinstance(data, dict):
        logger.error("Token endpoint answered HTTP %s with unexpected JSON", response.status_code)
        raise UpstreamError("Failed to exchange code for token", details=response.text)
    return data


class OAuthBridge:
    """Stateless passthrough to the providers' token endpoints.

    ``transport`` lets callers plug an :class:`httpx.MockTransport` in tests.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.oauth_timeout, transport=self.transport)

    def _credentials(self, provider: Provider) -> tuple[str, str]:
        client_id = getattr(settings, f"{provider}_client_id")
        client_secret = getattr(settings, f"{provider}_client_secret")
        if not client_id or not client_secret:
            raise ConfigurationError(f"{PROVIDERS[provider].label} OAuth credentials not configured")
        return client_id, client_secret

    async def exchange_code(self, provider: Provider, code: str | None, redirect_uri: str | None) -> dict[str, Any]:
        """Trade ``code`` for an access token.

        :raises ValidationFailure: No code supplied.
        :raises ConfigurationError: Client id/secret missing for the provider.
        :raises UpstreamError: The provider rejected the code or was unreachable.
        """
        if provider not in PROVIDERS:
            raise ValidationFailure(f"Unsupported OAuth provider {provider}")
        if not code:
            raise ValidationFailure("Authorization code is required")
        client_id, client_secret = self._credentials(provider)
        redirect = redirect_uri or settings.oauth_default_redirect_uri
        logger.info("Exchanging %s authorization code (redirect_uri=%s)", provider, redirect)
        try:
            if provider == "github":
                return await self._exchange_github(client_id, client_secret, code, redirect)
            return await self._exchange_bitbucket(client_id, client_secret, code, redirect)
        except httpx.HTTPError as exc:
            logger.error("%s token endpoint unreachable: %s", provider, exc)
            raise UpstreamError(
                f"Failed to reach {PROVIDERS[provider].label}: {exc}", status_code=502
            ) from exc

    async def _exchange_github(self, client_id: str, client_secret: str, code: str, redirect: str) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.post(
                PROVIDERS["github"].token_url,
                headers={"Accept": "application/json"},
                json={
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "code": code,
                    "redirect_uri": redirect,
                },
            )
        data = _json_body(response)
        if data.get("error") or response.is_error:
            logger.error("GitHub OAuth error: %s", data.get("error"))
            raise UpstreamError(
                data.get("error_description") or data.get("error") or "Failed to exchange code for token",
                details=data.get("error"),
            )
        return {
            "access_token": data.get("access_token"),
            "token_type": data.get("token_type"),
            "scope": data.get("scope"),
        }

    async def _exchange_bitbucket(self, client_id: str, client_secret: str, code: str, redirect: str) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.post(
                PROVIDERS["bitbucket"].token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": redirect,
                    "client_id": client_id,
                    "client_secret": client_secret,
                },
            )
        logger.debug("Bitbucket token response status %s", response.status_code)
        if response.is_error:
            logger.error("Bitbucket OAuth error (HTTP %s)", response.status_code)
            raise UpstreamError("Failed to exchange code for token", details=response.text)
        data = _json_body(response)
        token = {
            "access_token": data.get("access_token"),
            "token_type": data.get("token_type"),
            "scope": data.get("scopes") or data.get("scope"),
        }
        if data.get("refresh_token"):
            token["refresh_token"] = data["refresh_token"]
        return token
