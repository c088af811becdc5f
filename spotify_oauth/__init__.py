"""Spotify OAuth 2.0 Authorization Code Flow.

Build the authorize URL with AuthRequest, parse the redirect with
parse_callback, then exchange the code for a Token.
"""

from .auth import AuthRequest, generate_random_string
from .callback import CallbackCode, CallbackError, CallbackResult, parse_callback, verify_state
from .errors import (
    DeserializationError,
    InvalidState,
    MissingCallbackField,
    NetworkError,
    ProviderRejected,
    SpotifyOAuthError,
    StateMismatch,
    UriParseError,
    UrlBuildError,
)
from .exchange import TokenExchange, exchange_code
from .scopes import SpotifyScope, parse_scope_string, render_scopes
from .token import Token, expires_at_from

__all__ = [
    "AuthRequest",
    "generate_random_string",
    "CallbackCode",
    "CallbackError",
    "CallbackResult",
    "parse_callback",
    "verify_state",
    "SpotifyOAuthError",
    "UrlBuildError",
    "UriParseError",
    "MissingCallbackField",
    "StateMismatch",
    "InvalidState",
    "NetworkError",
    "ProviderRejected",
    "DeserializationError",
    "TokenExchange",
    "exchange_code",
    "SpotifyScope",
    "render_scopes",
    "parse_scope_string",
    "Token",
    "expires_at_from",
]
