"""Exception types raised by the authorization code flow."""

from typing import Optional


class SpotifyOAuthError(RuntimeError):
    """Base class for every error raised by spotify_oauth."""


class UrlBuildError(SpotifyOAuthError):
    """The authorization URL could not be built from the request fields."""


class UriParseError(SpotifyOAuthError):
    """The callback URI is not a valid absolute URI."""


class MissingCallbackField(SpotifyOAuthError):
    """The callback URI lacks a required query parameter."""

    def __init__(self, fields):
        self.fields = tuple(fields)
        super().__init__(f"Callback URL is missing required parameter(s): {', '.join(self.fields)}")


class StateMismatch(SpotifyOAuthError):
    """The callback state does not match the state sent with the request.

    Always fatal for the flow: a mismatch means the callback may be forged.
    """


class InvalidState(SpotifyOAuthError):
    """An operation was attempted with a callback it cannot accept."""


class NetworkError(SpotifyOAuthError):
    """The token request did not complete at the transport level."""


class ProviderRejected(SpotifyOAuthError):
    """The token endpoint answered with a non-200 status."""

    def __init__(self, status: int, body: str, *, error: Optional[str] = None):
        self.status = int(status)
        self.body = body
        self.error = error
        super().__init__(f"Spotify token request failed (HTTP {self.status}): {body}")


class DeserializationError(SpotifyOAuthError):
    """The token endpoint response could not be read as a token."""
