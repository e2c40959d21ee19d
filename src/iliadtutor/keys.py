"""Tutor API key storage.

Lookup order: LAMBDA_API_KEY environment variable, then the OS keychain.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

SERVICE_NAME = "com.iliadtutor.tutor"
KEY_ACCOUNT = "lambda_api_key"
API_KEY_ENV = "LAMBDA_API_KEY"

# Keys seen by get_api_key, scrubbed from log output
_known_keys: set[str] = set()


class KeyStorageError(Exception):
    """The API key could not be stored."""

    pass


def _keyring_available() -> bool:
    """Check if keyring is available."""
    try:
        import keyring
        from keyring.errors import NoKeyringError

        try:
            keyring.get_keyring()
            return True
        except NoKeyringError:
            return False
    except ImportError:
        return False


def get_api_key() -> str | None:
    """Return the tutor API key, or None if not configured."""
    env_key = os.environ.get(API_KEY_ENV)
    if env_key:
        _known_keys.add(env_key.strip())
        return env_key.strip()

    if _keyring_available():
        try:
            import keyring

            key = keyring.get_password(SERVICE_NAME, KEY_ACCOUNT)
            if key:
                _known_keys.add(key)
                return key
        except Exception as e:
            logger.debug(f"Keychain retrieval failed: {e}")
    return None


def store_api_key(key: str) -> None:
    """
    Store the tutor API key in the OS keychain.

    Raises:
        KeyStorageError: If no keychain backend is available or storage fails
    """
    if not _keyring_available():
        raise KeyStorageError(
            f"No OS keychain available. Set {API_KEY_ENV} in the environment instead."
        )
    try:
        import keyring

        keyring.set_password(SERVICE_NAME, KEY_ACCOUNT, key.strip())
    except Exception as e:
        raise KeyStorageError(f"Keychain storage failed: {e}") from e
    logger.info("API key stored in OS keychain")


def delete_api_key() -> bool:
    """Delete the stored key. Returns True if one was deleted."""
    if not _keyring_available():
        return False
    try:
        import keyring
        from keyring.errors import PasswordDeleteError

        keyring.delete_password(SERVICE_NAME, KEY_ACCOUNT)
    except PasswordDeleteError:
        return False
    logger.info("API key deleted from keychain")
    return True


def mask_key(key: str) -> str:
    """Mask a key for display (e.g., "secr****")."""
    if len(key) < 10:
        return "****"
    return key[:4] + "****"


def scrub_secrets(text: str) -> str:
    """Replace any known API key in text with its masked form."""
    for key in _known_keys:
        if key and key in text:
            text = text.replace(key, mask_key(key))
    return text
