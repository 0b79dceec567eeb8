"""Access token and user info from Granola's ``supabase.json``."""

import json
from typing import Any

from .errors import CredentialsError

_TOKEN_KEYS = ("workos_tokens", "cognito_tokens")


def _read_credentials(credentials_path: str) -> dict[str, Any]:
    try:
        with open(credentials_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CredentialsError(
            f"Could not read Granola credentials at {credentials_path}: {e}"
        ) from e
    if not isinstance(data, dict):
        raise CredentialsError(f"Unexpected credentials format in {credentials_path}")
    return data


def extract_access_token(credentials_path: str) -> str:
    """Return the bearer token stored by the Granola desktop app.

    Token blobs are JSON strings nested inside the file; WorkOS tokens are
    preferred over the older Cognito ones.

    Raises:
        CredentialsError: no readable file or no token in it.
    """
    config = _read_credentials(credentials_path)

    for key in _TOKEN_KEYS:
        blob = config.get(key)
        if not blob:
            continue
        try:
            tokens = json.loads(blob) if isinstance(blob, str) else blob
        except ValueError:
            continue
        if isinstance(tokens, dict) and tokens.get("access_token"):
            return tokens["access_token"]

    raise CredentialsError("No valid access token found in supabase.json.")


def read_user_info(credentials_path: str) -> dict[str, Any] | None:
    """Signed-in user's profile, or ``None`` when unavailable."""
    try:
        config = _read_credentials(credentials_path)
        info = config.get("user_info")
        if isinstance(info, str):
            info = json.loads(info)
    except (CredentialsError, ValueError):
        return None
    return info if isinstance(info, dict) and info else None
