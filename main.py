import asyncio
import json
import sys
import webbrowser

import questionary

from config import check_spotify_credentials, load_config, validate_config
from spotify_oauth import AuthRequest, CallbackError, SpotifyOAuthError, StateMismatch, parse_callback
from utils.logger import setup_logging, log_info, log_success, log_warning, log_error


def prompt_callback_url() -> str:
    """Ask the user to paste the URL the browser was redirected to."""
    answer = questionary.text(
        "Paste the full callback URL from your browser:",
        validate=lambda text: bool(text.strip()) or "Callback URL is required",
    ).ask()
    # questionary returns None on Ctrl-C
    if answer is None:
        raise KeyboardInterrupt
    return answer.strip()


def run_flow(config: dict, *, open_browser: bool = True) -> int:
    auth = AuthRequest.from_config(config)
    url = auth.authorize_url()

    log_info("Open this URL to authorize the app:")
    print(url)
    if open_browser and not webbrowser.open(url):
        log_warning("Could not open a browser; open the URL above manually.")

    callback = parse_callback(prompt_callback_url())
    if isinstance(callback, CallbackError):
        log_error(f"Spotify denied the authorization request: {callback.error}")
        return 1

    token = asyncio.run(auth.exchange(callback, timeout=config.get("spotify_http_timeout")))
    log_success("Received Spotify access token.")

    summary = token.to_dict()
    summary["access_token"] = token.access_token[:8] + "..."
    if token.refresh_token:
        summary["refresh_token"] = token.refresh_token[:8] + "..."
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    try:
        config = load_config()
    except json.JSONDecodeError as e:
        setup_logging()
        log_error(f"Config file contains invalid JSON: {e}")
        sys.exit(1)
    except (OSError, ValueError) as e:
        setup_logging()
        log_error(f"Error loading config: {e}")
        sys.exit(1)

    setup_logging(config.get("log_level"), config.get("log_file") or None)

    status = check_spotify_credentials(config)
    if not status["ok"]:
        log_error(status["message"])
        sys.exit(1)

    is_valid, errors = validate_config(config)
    if not is_valid:
        for err in errors:
            log_error(err)
        sys.exit(1)

    try:
        sys.exit(run_flow(config))
    except StateMismatch as e:
        log_error(f"Aborting: {e}. The callback may not come from this authorization request.")
        sys.exit(2)
    except SpotifyOAuthError as e:
        log_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        log_info("Cancelled.")
        sys.exit(130)
