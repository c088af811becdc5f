import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .errors import DeserializationError
from .scopes import SpotifyScope, parse_scope_string


def expires_at_from(expires_in: int, now: Optional[float] = None) -> float:
    """Return the unix timestamp ``expires_in`` seconds after ``now``."""

    now_ts = float(time.time() if now is None else now)
    return now_ts + float(expires_in)


@dataclass(frozen=True)
class Token:
    """Access token issued by the Spotify accounts service."""

    access_token: str
    token_type: str
    scope: Tuple[str, ...]
    expires_in: int
    expires_at: float
    refresh_token: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Dict[str, Any], *, now: Optional[float] = None) -> "Token":
        """Convert Spotify token response JSON into a Token.

        Spotify returns:
        - access_token
        - token_type
        - expires_in (seconds)
        - refresh_token (optional)
        - scope (space-delimited string, may be empty)
        """

        if not isinstance(payload, dict):
            raise DeserializationError(f"Token response was not an object: {payload!r}")

        access_token = payload.get("access_token")
        token_type = payload.get("token_type")
        expires_in = payload.get("expires_in")
        refresh_token = payload.get("refresh_token")
        scope = payload.get("scope", "")

        if not isinstance(access_token, str) or not access_token:
            raise DeserializationError("Token response has no access_token")
        if not isinstance(token_type, str) or not token_type:
            raise DeserializationError("Token response has no token_type")
        # bool is an int subclass; reject it explicitly.
        if isinstance(expires_in, bool) or not isinstance(expires_in, int) or expires_in < 0:
            raise DeserializationError(f"Token response has invalid expires_in: {expires_in!r}")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise DeserializationError("Token response has a non-string refresh_token")
        if scope is not None and not isinstance(scope, str):
            raise DeserializationError("Token response has a non-string scope")

        return cls(
            access_token=access_token,
            token_type=token_type,
            scope=parse_scope_string(scope),
            expires_in=expires_in,
            expires_at=expires_at_from(expires_in, now),
            refresh_token=refresh_token or None,
        )

    def is_expired(self, now: Optional[float] = None) -> bool:
        now_ts = float(time.time() if now is None else now)
        return now_ts >= self.expires_at

    def has_scope(self, scope) -> bool:
        value = scope.value if isinstance(scope, SpotifyScope) else str(scope)
        return value in self.scope

    def authorization_header(self) -> str:
        """Value for the Authorization header of Web API requests."""
        return f"{self.token_type} {self.access_token}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "scope": " ".join(self.scope),
            "expires_in": self.expires_in,
            "expires_at": self.expires_at,
            "refresh_token": self.refresh_token,
        }

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks.
        return (
            f"Token(token_type={self.token_type!r}, scope={self.scope!r}, "
            f"expires_in={self.expires_in!r}, expires_at={self.expires_at!r}, "
            f"refresh_token={'<set>' if self.refresh_token else None})"
        )
