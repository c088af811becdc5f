import hmac
import urllib.parse
from dataclasses import dataclass
from typing import Dict, List, Union

from .errors import MissingCallbackField, StateMismatch, UriParseError


@dataclass(frozen=True)
class CallbackCode:
    """Successful redirect: the user granted access."""

    code: str
    state: str


@dataclass(frozen=True)
class CallbackError:
    """Failed redirect: the user denied access or the request was invalid."""

    error: str
    state: str = ""


CallbackResult = Union[CallbackCode, CallbackError]


def split_absolute_uri(value: str) -> urllib.parse.SplitResult:
    """Split ``value``, raising ValueError unless it has a scheme and a usable host."""

    parsed = urllib.parse.urlsplit(value)
    # urlsplit only validates the port lazily.
    _ = parsed.port
    host = parsed.hostname
    if not parsed.scheme or not host:
        raise ValueError(f"not an absolute URL: {value}")
    if any(c.isspace() for c in host):
        raise ValueError(f"host contains whitespace: {host!r}")
    return parsed


def _first(qs: Dict[str, List[str]], key: str) -> str:
    values = qs.get(key) or []
    return str(values[0]) if values else ""


def parse_callback(raw_uri: str) -> CallbackResult:
    """Parse the redirect URI Spotify sent the user back to.

    Returns a CallbackError when the redirect carries ``error`` (a missing
    ``state`` is then read as ""), otherwise a CallbackCode. ``code`` and
    ``state`` must both be present and non-empty for a CallbackCode.
    """

    raw = str(raw_uri or "").strip()
    if not raw:
        raise UriParseError("Callback URL is empty")

    try:
        parsed = split_absolute_uri(raw)
    except ValueError as e:
        raise UriParseError(f"Callback URL failed to parse: {e}") from e

    qs = urllib.parse.parse_qs(parsed.query, keep_blank_values=True)

    if "error" in qs:
        return CallbackError(error=_first(qs, "error"), state=_first(qs, "state"))

    code = _first(qs, "code")
    state = _first(qs, "state")
    missing = [name for name, value in (("code", code), ("state", state)) if not value]
    if missing:
        raise MissingCallbackField(missing)

    return CallbackCode(code=code, state=state)


def verify_state(callback: CallbackResult, expected_state: str) -> None:
    """Raise StateMismatch unless the callback echoes ``expected_state``."""

    expected = str(expected_state or "")
    received = str(getattr(callback, "state", "") or "")
    if not expected or not hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8")):
        raise StateMismatch("Callback state does not match the authorization request state")
