import json
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from spotify_oauth.scopes import SpotifyScope

CONFIG_PATH = "config.json"

# Environment variables that override config.json values
ENV_OVERRIDES = {
    "SPOTIFY_CLIENT_ID": "spotify_client_id",
    "SPOTIFY_CLIENT_SECRET": "spotify_client_secret",
    "SPOTIFY_REDIRECT_URI": "spotify_redirect_uri",
}

# Default configuration values
DEFAULT_CONFIG = {
    "spotify_client_id": "",
    "spotify_client_secret": "",
    "spotify_redirect_uri": "http://127.0.0.1:8888/callback",
    "spotify_scopes": [
        "streaming",
    ],
    "spotify_show_dialog": False,
    # Seconds; None leaves the token request without a timeout.
    "spotify_http_timeout": None,
    "log_level": "INFO",
    "log_file": "",
}

# Validation rules for config fields
CONFIG_SCHEMA = {
    "spotify_client_id": {"type": str, "required": True},
    "spotify_client_secret": {"type": str, "required": True},
    "spotify_redirect_uri": {"type": str, "required": True},
    "spotify_scopes": {
        "type": list,
        "required": False,
        "element_type": str,
        "element_choices": [s.value for s in SpotifyScope],
    },
    "spotify_show_dialog": {"type": bool, "required": False},
    "spotify_http_timeout": {"type": (int, float), "required": False, "nullable": True, "min": 0, "max": 600},
    "log_level": {"type": str, "required": False, "choices": ["DEBUG", "INFO", "WARNING", "ERROR"]},
    "log_file": {"type": str, "required": False},
}


def apply_env_overrides(config: Dict[str, Any], *, dotenv_path: Optional[str] = None) -> Dict[str, Any]:
    """Overlay SPOTIFY_* environment variables (and a .env file) onto config."""
    load_dotenv(dotenv_path=dotenv_path)

    for env_key, config_key in ENV_OVERRIDES.items():
        value = os.getenv(env_key)
        if value is not None and value.strip():
            config[config_key] = value.strip()

    return config


def load_config(path: str = CONFIG_PATH, *, use_env: bool = True, dotenv_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file, applying defaults for missing fields.
    A missing file yields the defaults; environment overrides apply last.
    """
    config: Dict[str, Any] = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)
        if not isinstance(config, dict):
            raise ValueError(f"Config file {path} must contain a JSON object.")

    # Apply defaults for missing fields
    for key, value in DEFAULT_CONFIG.items():
        if key not in config:
            config[key] = list(value) if isinstance(value, list) else value

    if use_env:
        apply_env_overrides(config, dotenv_path=dotenv_path)

    return config


def save_config(config: Dict[str, Any], path: str = CONFIG_PATH) -> bool:
    """Save configuration to file. The client secret is never written."""
    to_save = {k: v for k, v in config.items() if k != "spotify_client_secret"}
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(to_save, f, indent=2)
        return True
    except OSError as e:
        raise IOError(f"Failed to save config: {e}") from e


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration against schema.
    Returns (is_valid, list_of_errors).
    """
    errors = []

    for key, rules in CONFIG_SCHEMA.items():
        # Check required fields
        if rules.get("required", False) and key not in config:
            errors.append(f"Missing required field: {key}")
            continue

        if key not in config:
            continue

        value = config[key]

        if value is None and rules.get("nullable", False):
            continue

        # Type check; bool is not accepted where a number is expected
        expected_type = rules.get("type")
        if expected_type and (
            not isinstance(value, expected_type)
            or (isinstance(value, bool) and expected_type is not bool)
        ):
            type_names = expected_type.__name__ if not isinstance(expected_type, tuple) else "/".join(t.__name__ for t in expected_type)
            errors.append(f"Field '{key}' must be {type_names}, got {type(value).__name__}")
            continue

        # List element type check (when schema uses: {"type": list, "element_type": ...})
        if isinstance(value, list) and "element_type" in rules:
            elem_type = rules["element_type"]
            bad_elems = [v for v in value if not isinstance(v, elem_type)]
            if bad_elems:
                errors.append(
                    f"Field '{key}' must be a list of {elem_type.__name__}, got invalid elements: {bad_elems}"
                )
                continue

        if isinstance(value, list) and "element_choices" in rules:
            unknown = [v for v in value if v not in rules["element_choices"]]
            if unknown:
                errors.append(f"Field '{key}' has unknown values: {unknown}")

        # Choices check
        if "choices" in rules and value not in rules["choices"]:
            errors.append(f"Field '{key}' must be one of {rules['choices']}, got '{value}'")

        # Range check for numeric values
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if "min" in rules and value < rules["min"]:
                errors.append(f"Field '{key}' must be >= {rules['min']}, got {value}")
            if "max" in rules and value > rules["max"]:
                errors.append(f"Field '{key}' must be <= {rules['max']}, got {value}")

    return len(errors) == 0, errors


def check_spotify_credentials(config: Dict[str, Any]) -> Dict[str, Any]:
    """Check the Spotify OAuth fields and return a structured status dict."""
    config = config or {}
    client_id = str(config.get("spotify_client_id", "")).strip()
    client_secret = str(config.get("spotify_client_secret", "")).strip()
    redirect_uri = str(config.get("spotify_redirect_uri", "")).strip()

    missing = []
    if not client_id:
        missing.append("spotify_client_id (or SPOTIFY_CLIENT_ID)")
    if not client_secret:
        missing.append("spotify_client_secret (or SPOTIFY_CLIENT_SECRET)")
    if not redirect_uri:
        missing.append("spotify_redirect_uri (or SPOTIFY_REDIRECT_URI)")

    if missing:
        message = "Missing Spotify credentials:\n- " + "\n- ".join(missing)
    else:
        message = "Spotify credentials look OK."

    return {
        "ok": not missing,
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scopes": list(config.get("spotify_scopes", []) or []),
        "missing": missing,
        "message": message,
    }



def get_config_value(key: str, default: Any = None, path: str = CONFIG_PATH) -> Any:
    """Get a single config value with optional default."""
    try:
        config = load_config(path)
        return config.get(key, default)
    except (OSError, ValueError):
        return default
