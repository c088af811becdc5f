import logging
import secrets
import string
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

import httpx

from .callback import CallbackResult, split_absolute_uri
from .errors import UrlBuildError
from .exchange import TokenExchange
from .scopes import SpotifyScope, render_scopes
from .token import Token

logger = logging.getLogger(__name__)

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
RESPONSE_TYPES = ("code", "token")
STATE_LENGTH = 20

_ALPHANUMERIC = string.ascii_letters + string.digits


def generate_random_string(length: int) -> str:
    """Return ``length`` random alphanumeric characters."""

    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(int(length)))


def _is_absolute_uri(value: str) -> bool:
    try:
        split_absolute_uri(value)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class AuthRequest:
    """One authorization request: the values behind the URL the user visits.

    ``state`` is generated on construction and must be compared with the
    state Spotify echoes back on the redirect.
    """

    client_id: str
    client_secret: str
    redirect_uri: str
    response_type: str = "code"
    scopes: Tuple[SpotifyScope, ...] = ()
    show_dialog: bool = False
    state: str = field(init=False, default_factory=lambda: generate_random_string(STATE_LENGTH))

    def __post_init__(self):
        scopes = self.scopes or ()
        # A bare literal is one scope, not a sequence of characters.
        if isinstance(scopes, str):
            scopes = (scopes,)
        # Freeze caller-supplied lists so the request stays immutable.
        object.__setattr__(self, "scopes", tuple(SpotifyScope(s) for s in scopes))

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        scopes: Optional[Iterable[SpotifyScope]] = None,
        *,
        response_type: str = "code",
        show_dialog: Optional[bool] = None,
    ) -> "AuthRequest":
        """Build a request from the spotify_* keys of a config dict."""

        config = config or {}
        scope_list = scopes if scopes is not None else config.get("spotify_scopes", [])
        if isinstance(scope_list, str):
            scope_list = scope_list.split()
        if show_dialog is None:
            show_dialog = bool(config.get("spotify_show_dialog", False))

        return cls(
            client_id=str(config.get("spotify_client_id", "")).strip(),
            client_secret=str(config.get("spotify_client_secret", "")).strip(),
            redirect_uri=str(config.get("spotify_redirect_uri", "")).strip(),
            response_type=response_type,
            scopes=tuple(SpotifyScope.from_str(s) for s in scope_list),
            show_dialog=show_dialog,
        )

    def scope_string(self) -> str:
        return render_scopes(self.scopes)

    def authorize_url(self) -> str:
        if not self.client_id:
            raise UrlBuildError("client_id is empty")
        if not self.response_type:
            raise UrlBuildError("response_type is empty")
        if self.response_type not in RESPONSE_TYPES:
            raise UrlBuildError(f"response_type must be one of {RESPONSE_TYPES}, got {self.response_type!r}")
        if not self.redirect_uri:
            raise UrlBuildError("redirect_uri is empty")
        if not _is_absolute_uri(self.redirect_uri):
            raise UrlBuildError(f"redirect_uri is not an absolute URI: {self.redirect_uri}")

        params = {
            "client_id": self.client_id,
            "response_type": self.response_type,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope_string(),
            "state": self.state,
            "show_dialog": "true" if self.show_dialog else "false",
        }
        return f"{SPOTIFY_AUTHORIZE_URL}?{urllib.parse.urlencode(params)}"

    def token_exchange(
        self,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> TokenExchange:
        return TokenExchange(
            self.client_id,
            self.client_secret,
            self.redirect_uri,
            http_client=http_client,
            timeout=timeout,
        )

    async def exchange(
        self,
        callback: CallbackResult,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> Token:
        """Exchange ``callback`` using this request's credentials and state."""

        logger.debug("Exchanging authorization code for client %s", self.client_id)
        exchanger = self.token_exchange(http_client=http_client, timeout=timeout)
        return await exchanger.exchange(callback, expected_state=self.state)

    def __repr__(self) -> str:
        return (
            f"AuthRequest(client_id={self.client_id!r}, redirect_uri={self.redirect_uri!r}, "
            f"response_type={self.response_type!r}, scopes={self.scope_string()!r}, "
            f"show_dialog={self.show_dialog!r})"
        )
