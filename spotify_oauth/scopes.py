from enum import Enum
from typing import Iterable, Tuple


class SpotifyScope(str, Enum):
    """Permission scopes recognised by the Spotify accounts service.

    See https://developer.spotify.com/documentation/web-api/concepts/scopes
    """

    UGC_IMAGE_UPLOAD = "ugc-image-upload"

    USER_READ_RECENTLY_PLAYED = "user-read-recently-played"
    USER_TOP_READ = "user-top-read"
    USER_READ_PLAYBACK_POSITION = "user-read-playback-position"

    USER_LIBRARY_MODIFY = "user-library-modify"
    USER_LIBRARY_READ = "user-library-read"

    PLAYLIST_READ_PRIVATE = "playlist-read-private"
    PLAYLIST_MODIFY_PUBLIC = "playlist-modify-public"
    PLAYLIST_MODIFY_PRIVATE = "playlist-modify-private"
    PLAYLIST_READ_COLLABORATIVE = "playlist-read-collaborative"

    USER_READ_EMAIL = "user-read-email"
    USER_READ_BIRTHDATE = "user-read-birthdate"
    USER_READ_PRIVATE = "user-read-private"

    USER_READ_PLAYBACK_STATE = "user-read-playback-state"
    USER_MODIFY_PLAYBACK_STATE = "user-modify-playback-state"
    USER_READ_CURRENTLY_PLAYING = "user-read-currently-playing"

    APP_REMOTE_CONTROL = "app-remote-control"
    STREAMING = "streaming"

    USER_FOLLOW_READ = "user-follow-read"
    USER_FOLLOW_MODIFY = "user-follow-modify"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_str(cls, value: str) -> "SpotifyScope":
        """Return the member whose literal is ``value`` (ValueError if unknown)."""

        return cls(str(value).strip())


def render_scopes(scopes: Iterable[SpotifyScope]) -> str:
    """Join scope literals with single spaces, keeping input order."""

    return " ".join(SpotifyScope(s).value for s in (scopes or []))


def parse_scope_string(value) -> Tuple[str, ...]:
    """Split a space-delimited scope string as returned by the token endpoint."""

    if not value:
        return ()
    return tuple(str(value).split())
