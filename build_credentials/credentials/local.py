"""Keystores supplied from the local machine rather than generated.

Two sources exist: a keystore file the operator points at interactively, and
the non-interactive CI form where the file and alias come from command options
and both passwords from environment variables.
"""

import os
from pathlib import Path

import structlog

from build_credentials.credentials.models import AndroidKeystore
from build_credentials.exceptions import ValidationFailedError

log = structlog.get_logger(__name__)

KEYSTORE_PASSWORD_ENV_VAR = "BUILDCREDS_ANDROID_KEYSTORE_PASSWORD"
KEY_PASSWORD_ENV_VAR = "BUILDCREDS_ANDROID_KEY_PASSWORD"


def read_keystore_file(
    keystore_path: str | Path,
    keystore_password: str,
    key_alias: str,
    key_password: str,
) -> AndroidKeystore:
    """Load a keystore file into a complete bundle.

    Raises:
        ValidationFailedError: If the file is missing or a field is empty
    """
    path = Path(keystore_path).expanduser()
    if not path.is_file():
        raise ValidationFailedError(f"Keystore file does not exist: {path}")

    keystore = AndroidKeystore.from_file_bytes(path.read_bytes(), keystore_password, key_alias, key_password)
    if not keystore.is_complete:
        raise ValidationFailedError(f"Keystore is missing: {', '.join(keystore.missing_fields)}")
    return keystore


def keystore_from_environment(keystore_path: str | Path | None, key_alias: str | None) -> AndroidKeystore | None:
    """Build a bundle from CI options and environment variables.

    Returns None when none of the inputs is provided, so the caller falls back
    to the interactive flow.

    Raises:
        ValidationFailedError: If only some of the inputs are provided
    """
    inputs = {
        "--keystore-path": keystore_path,
        "--keystore-alias": key_alias,
        KEYSTORE_PASSWORD_ENV_VAR: os.getenv(KEYSTORE_PASSWORD_ENV_VAR),
        KEY_PASSWORD_ENV_VAR: os.getenv(KEY_PASSWORD_ENV_VAR),
    }
    # Passwords alone in the environment do not mean the operator wants CI mode.
    if not keystore_path and not key_alias:
        return None

    missing = [name for name, value in inputs.items() if not value]
    if missing:
        raise ValidationFailedError(
            f"When uploading your own keystore you must provide all of: {', '.join(inputs)}",
            suggestion=f"Missing: {', '.join(missing)}",
        )

    log.info("keystore_from_environment", path=str(keystore_path))
    return read_keystore_file(
        str(keystore_path),
        inputs[KEYSTORE_PASSWORD_ENV_VAR] or "",
        str(key_alias),
        inputs[KEY_PASSWORD_ENV_VAR] or "",
    )
