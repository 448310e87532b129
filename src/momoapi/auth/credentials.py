"""Persistent storage for MOMO credentials.

Two separate files are managed here:

* ``credentials.json`` — the provisioning identity (``api_user_id`` and
  ``api_key``).  Written by ``auth setup``.
* ``access_token.json`` — the last access token obtained for a product,
  with its absolute expiry (``access_token``, ``product_type``,
  ``expires_at``).  Written by ``auth token``.

Both files are stored under ``~/.config/momoapi/`` with permissions
restricted to the owner (0o600).  The in-memory
:class:`~momoapi.auth.interfaces.CredentialStore` never checks expiry; it is
tracked here, on the caller side.
"""

import json
import time
from pathlib import Path

from momoapi.core.constants import ProductType
from momoapi.core.models import AccessToken

_CONFIG_DIR = Path.home() / ".config" / "momoapi"
_CREDENTIALS_FILE = _CONFIG_DIR / "credentials.json"
_ACCESS_TOKEN_FILE = _CONFIG_DIR / "access_token.json"


def _write_private(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    path.chmod(0o600)


def _read_json(path: Path) -> dict | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return None
    return data if isinstance(data, dict) else None


# ---------------------------------------------------------------------------
# API user and key
# ---------------------------------------------------------------------------


def save(api_user_id: str, api_key: str) -> None:
    """Persist the API user ID and key to the config file.

    Creates the config directory if it does not already exist and restricts
    file permissions to the owner only.

    Args:
        api_user_id: The API user UUID.
        api_key: The API key generated for that user.
    """
    _write_private(
        _CREDENTIALS_FILE, {"api_user_id": api_user_id, "api_key": api_key}
    )


def load() -> dict[str, str]:
    """Load the API user ID and key from the config file.

    Returns:
        A dictionary with ``api_user_id`` and ``api_key`` keys, or an empty
        dictionary if no credentials file exists or it cannot be parsed.
    """
    return _read_json(_CREDENTIALS_FILE) or {}


def clear() -> bool:
    """Remove the credentials file.

    Returns:
        ``True`` if the file was deleted, ``False`` if it did not exist.
    """
    if _CREDENTIALS_FILE.exists():
        _CREDENTIALS_FILE.unlink()
        return True
    return False


def credentials_path() -> Path:
    """Return the path to the API user credentials file.

    Returns:
        A :class:`pathlib.Path` pointing to the credentials JSON file.
    """
    return _CREDENTIALS_FILE


# ---------------------------------------------------------------------------
# Access token
# ---------------------------------------------------------------------------


def save_access_token(
    token: AccessToken,
    product_type: ProductType | str,
    now: float | None = None,
) -> float:
    """Persist an access token together with its absolute expiry.

    Args:
        token: The token returned by the token endpoint.
        product_type: The product the token was issued for.
        now: Reference time for the expiry; defaults to :func:`time.time`.

    Returns:
        The Unix timestamp at which the token expires.
    """
    expires_at = token.expires_at(now)
    _write_private(
        _ACCESS_TOKEN_FILE,
        {
            "access_token": token.access_token,
            "token_type": token.token_type,
            "product_type": ProductType(product_type).value,
            "expires_at": expires_at,
        },
    )
    return expires_at


def load_access_token() -> dict | None:
    """Load the stored access token, expired or not.

    Returns:
        A dictionary with ``access_token``, ``token_type``,
        ``product_type`` and ``expires_at`` keys, or ``None`` if the file
        does not exist or cannot be parsed.
    """
    return _read_json(_ACCESS_TOKEN_FILE)


def is_expired(token: dict | None, now: float | None = None) -> bool:
    """Return ``True`` if ``token`` is missing, malformed or past expiry."""
    if not token or not token.get("access_token"):
        return True
    try:
        expires_at = float(token.get("expires_at", 0))
    except (TypeError, ValueError):
        return True
    return (time.time() if now is None else now) >= expires_at


def load_valid_access_token(now: float | None = None) -> str:
    """Return the stored access token, or ``""`` once it has expired."""
    token = load_access_token()
    if is_expired(token, now):
        return ""
    return token["access_token"]


def clear_access_token() -> bool:
    """Remove the access token file.

    Returns:
        ``True`` if the file was deleted, ``False`` if it did not exist.
    """
    if _ACCESS_TOKEN_FILE.exists():
        _ACCESS_TOKEN_FILE.unlink()
        return True
    return False


def access_token_path() -> Path:
    """Return the path to the access token file.

    Returns:
        A :class:`pathlib.Path` pointing to the access token JSON file.
    """
    return _ACCESS_TOKEN_FILE
