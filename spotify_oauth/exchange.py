import base64
import json
import logging
from typing import Any, Dict, Optional

import httpx

from .callback import CallbackCode, CallbackResult, verify_state
from .errors import DeserializationError, InvalidState, NetworkError, ProviderRejected
from .token import Token

logger = logging.getLogger(__name__)

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """Return ``Basic base64(client_id:client_secret)``."""

    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


class TokenExchange:
    """Exchanges authorization codes (and refresh tokens) for access tokens.

    One POST per call, no retries. Timeouts belong to the caller: either pass
    a configured ``http_client`` or a ``timeout`` for the default client
    (``None`` disables the timeout).
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        token_url: str = SPOTIFY_TOKEN_URL,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = str(redirect_uri)
        self.http_client = http_client
        self.timeout = timeout
        self.token_url = token_url

    async def exchange(self, callback: CallbackResult, *, expected_state: str) -> Token:
        """Exchange the code in ``callback`` for a Token.

        The callback must be a CallbackCode whose state matches
        ``expected_state``; otherwise nothing is sent.
        """

        if not isinstance(callback, CallbackCode):
            raise InvalidState(
                f"Cannot exchange a callback without an authorization code: {callback!r}"
            )
        verify_state(callback, expected_state)

        payload = await self._post_form(
            {
                "grant_type": "authorization_code",
                "code": callback.code,
                "redirect_uri": self.redirect_uri,
            }
        )
        token = Token.from_response(payload)
        logger.info("Spotify authorization code exchanged (scopes: %s)", " ".join(token.scope) or "-")
        return token

    async def refresh(self, refresh_token: str) -> Token:
        """Request a new access token with a refresh token.

        Spotify may omit refresh_token on refresh; the previous one is kept.
        """

        if not refresh_token:
            raise InvalidState("Cannot refresh without a refresh_token")

        payload = await self._post_form({"grant_type": "refresh_token", "refresh_token": refresh_token})
        if isinstance(payload, dict) and not payload.get("refresh_token"):
            payload = {**payload, "refresh_token": refresh_token}

        token = Token.from_response(payload)
        logger.info("Spotify access token refreshed")
        return token

    async def _post_form(self, form: Dict[str, Any]) -> Any:
        data = {k: str(v) for k, v in form.items() if v is not None}
        headers = {
            "Authorization": basic_auth_header(self.client_id, self.client_secret),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        try:
            if self.http_client is not None:
                resp = await self.http_client.post(self.token_url, data=data, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=False) as client:
                    resp = await client.post(self.token_url, data=data, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(f"Spotify token request failed: {e}") from e

        if resp.status_code != 200:
            logger.warning("Spotify token endpoint rejected the request (HTTP %s)", resp.status_code)
            raise ProviderRejected(resp.status_code, resp.text, error=_error_code(resp))

        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DeserializationError(f"Spotify token response was not JSON: {resp.text}") from e


def _error_code(resp: httpx.Response) -> Optional[str]:
    # Spotify answers errors with {"error": "...", "error_description": "..."}.
    try:
        body = resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None


async def exchange_code(
    callback: CallbackResult,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    *,
    expected_state: str,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> Token:
    """Functional form of :meth:`TokenExchange.exchange`."""

    exchanger = TokenExchange(
        client_id,
        client_secret,
        redirect_uri,
        http_client=http_client,
        timeout=timeout,
    )
    return await exchanger.exchange(callback, expected_state=expected_state)
