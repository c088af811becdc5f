"""Token exchange tests against a mocked Spotify token endpoint.

No network access: every request goes through httpx.MockTransport.

Usage:
  python3 -m unittest tests.test_token_exchange
"""

import base64
import json
import sys
import time
import unittest
import urllib.parse
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from spotify_oauth import (
    AuthRequest,
    CallbackCode,
    CallbackError,
    DeserializationError,
    InvalidState,
    NetworkError,
    ProviderRejected,
    SpotifyScope,
    StateMismatch,
    TokenExchange,
    exchange_code,
)
from spotify_oauth.exchange import SPOTIFY_TOKEN_URL, basic_auth_header

REDIRECT_URI = "http://localhost:8888/callback"
TOKEN_JSON = {"access_token": "t", "token_type": "Bearer", "scope": "streaming", "expires_in": 3600}


class _RecordingEndpoint:
    """Callable for httpx.MockTransport that records requests and replays one response."""

    def __init__(self, status_code=200, *, json_body=None, content=None, exc=None):
        self.status_code = status_code
        self.json_body = json_body
        self.content = content
        self.exc = exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(f"simulated {self.exc.__name__}", request=request)
        if self.json_body is not None:
            return httpx.Response(self.status_code, json=self.json_body)
        return httpx.Response(self.status_code, content=self.content or b"")

    @property
    def form(self):
        body = self.requests[-1].content.decode("utf-8")
        return {k: v[0] for k, v in urllib.parse.parse_qs(body).items()}


class TestTokenExchange(unittest.IsolatedAsyncioTestCase):
    async def _exchange(self, endpoint, callback=None, *, expected_state="XYZ"):
        callback = callback or CallbackCode(code="ABC", state="XYZ")
        async with httpx.AsyncClient(transport=httpx.MockTransport(endpoint)) as client:
            return await exchange_code(
                callback,
                "client-id",
                "client-secret",
                REDIRECT_URI,
                expected_state=expected_state,
                http_client=client,
            )

    async def test_exchange_returns_token(self):
        endpoint = _RecordingEndpoint(json_body=TOKEN_JSON)
        before = time.time()
        token = await self._exchange(endpoint)
        after = time.time()

        self.assertEqual(token.access_token, "t")
        self.assertEqual(token.token_type, "Bearer")
        self.assertEqual(token.scope, ("streaming",))
        self.assertEqual(token.expires_in, 3600)
        self.assertIsNone(token.refresh_token)
        self.assertGreaterEqual(token.expires_at, before + 3600)
        self.assertLessEqual(token.expires_at, after + 3600)
        self.assertFalse(token.is_expired())

    async def test_exchange_request_shape(self):
        endpoint = _RecordingEndpoint(json_body={**TOKEN_JSON, "refresh_token": "r"})
        token = await self._exchange(endpoint)
        self.assertEqual(token.refresh_token, "r")

        self.assertEqual(len(endpoint.requests), 1)
        request = endpoint.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), SPOTIFY_TOKEN_URL)
        self.assertEqual(request.headers["content-type"], "application/x-www-form-urlencoded")

        expected_auth = "Basic " + base64.b64encode(b"client-id:client-secret").decode("ascii")
        self.assertEqual(request.headers["authorization"], expected_auth)
        self.assertEqual(basic_auth_header("client-id", "client-secret"), expected_auth)

        self.assertEqual(
            endpoint.form,
            {"grant_type": "authorization_code", "code": "ABC", "redirect_uri": REDIRECT_URI},
        )

    async def test_provider_rejected(self):
        body = {"error": "invalid_grant", "error_description": "Invalid authorization code"}
        endpoint = _RecordingEndpoint(400, json_body=body)
        with self.assertRaises(ProviderRejected) as ctx:
            await self._exchange(endpoint)
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.error, "invalid_grant")
        self.assertEqual(json.loads(ctx.exception.body), body)

    async def test_non_200_success_status_is_rejected(self):
        endpoint = _RecordingEndpoint(204)
        with self.assertRaises(ProviderRejected) as ctx:
            await self._exchange(endpoint)
        self.assertEqual(ctx.exception.status, 204)
        self.assertIsNone(ctx.exception.error)

    async def test_malformed_json(self):
        endpoint = _RecordingEndpoint(200, content=b"<html>not json</html>")
        with self.assertRaises(DeserializationError):
            await self._exchange(endpoint)

    async def test_json_missing_fields(self):
        endpoint = _RecordingEndpoint(200, json_body={"token_type": "Bearer"})
        with self.assertRaises(DeserializationError):
            await self._exchange(endpoint)

    async def test_network_error(self):
        endpoint = _RecordingEndpoint(exc=httpx.ConnectError)
        with self.assertRaises(NetworkError) as ctx:
            await self._exchange(endpoint)
        self.assertIsInstance(ctx.exception.__cause__, httpx.ConnectError)

    async def test_state_mismatch_sends_nothing(self):
        endpoint = _RecordingEndpoint(json_body=TOKEN_JSON)
        with self.assertRaises(StateMismatch):
            await self._exchange(endpoint, expected_state="something-else")
        self.assertEqual(endpoint.requests, [])

    async def test_error_callback_sends_nothing(self):
        endpoint = _RecordingEndpoint(json_body=TOKEN_JSON)
        with self.assertRaises(InvalidState):
            await self._exchange(endpoint, CallbackError(error="access_denied", state="XYZ"))
        self.assertEqual(endpoint.requests, [])


class TestAuthRequestExchange(unittest.IsolatedAsyncioTestCase):
    async def test_exchange_uses_request_state_and_credentials(self):
        auth = AuthRequest("cid", "csecret", REDIRECT_URI, "code", [SpotifyScope.STREAMING], False)
        endpoint = _RecordingEndpoint(json_body=TOKEN_JSON)

        async with httpx.AsyncClient(transport=httpx.MockTransport(endpoint)) as client:
            token = await auth.exchange(CallbackCode(code="ABC", state=auth.state), http_client=client)
            with self.assertRaises(StateMismatch):
                await auth.exchange(CallbackCode(code="ABC", state="forged"), http_client=client)

        self.assertEqual(token.access_token, "t")
        self.assertEqual(len(endpoint.requests), 1)
        self.assertEqual(
            endpoint.requests[0].headers["authorization"],
            "Basic " + base64.b64encode(b"cid:csecret").decode("ascii"),
        )


class TestTokenRefresh(unittest.IsolatedAsyncioTestCase):
    async def _refresh(self, endpoint, refresh_token="old-refresh"):
        async with httpx.AsyncClient(transport=httpx.MockTransport(endpoint)) as client:
            exchanger = TokenExchange("client-id", "client-secret", REDIRECT_URI, http_client=client)
            return await exchanger.refresh(refresh_token)

    async def test_refresh_keeps_previous_refresh_token(self):
        endpoint = _RecordingEndpoint(json_body=TOKEN_JSON)
        token = await self._refresh(endpoint)
        self.assertEqual(token.refresh_token, "old-refresh")
        self.assertEqual(endpoint.form, {"grant_type": "refresh_token", "refresh_token": "old-refresh"})

    async def test_refresh_uses_rotated_refresh_token(self):
        endpoint = _RecordingEndpoint(json_body={**TOKEN_JSON, "refresh_token": "new-refresh"})
        token = await self._refresh(endpoint)
        self.assertEqual(token.refresh_token, "new-refresh")

    async def test_refresh_requires_token(self):
        endpoint = _RecordingEndpoint(json_body=TOKEN_JSON)
        with self.assertRaises(InvalidState):
            await self._refresh(endpoint, refresh_token="")
        self.assertEqual(endpoint.requests, [])


if __name__ == "__main__":
    unittest.main(verbosity=2)
