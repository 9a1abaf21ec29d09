"""Authenticated session lookup.

The identity (username) comes from the session state file written at login.
The session secret is looked up, in order, in:

- the ``BUILDCREDS_SESSION_SECRET`` environment variable (CI/CD, containers)
- the OS keyring (``buildcreds/session`` service, keyed by username)
- the ``auth.sessionSecret`` entry of the state file

Platform Support for the keyring:
- Linux: Secret Service API (GNOME Keyring, KWallet)
- macOS: Keychain
- Windows: Windows Credential Locker
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import keyring
import yaml
from keyring.errors import KeyringError

from build_credentials.exceptions import AuthenticationRequiredError, ConfigurationError

logger = logging.getLogger(__name__)

SESSION_SECRET_ENV_VAR = "BUILDCREDS_SESSION_SECRET"
KEYRING_SERVICE = "buildcreds/session"


@dataclass(frozen=True)
class Identity:
    """The logged-in account.

    ``owner`` mirrors the ``auth.owner`` entry written at login and is only
    informational: the experience owner comes from the project manifest,
    falling back to ``username`` (see ``context.experience_name``).
    """

    username: str
    owner: str | None = None


class SessionStore:
    """Reads the identity and session secret saved by a previous login.

    Example:
        >>> session = SessionStore(Path("~/.buildcreds/state.yaml").expanduser())
        >>> identity = session.require_identity()
    """

    def __init__(self, state_file: Path) -> None:
        self.state_file = state_file

    def _auth_section(self) -> dict[str, Any]:
        if not self.state_file.exists():
            return {}
        try:
            state = yaml.safe_load(self.state_file.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read session state {self.state_file}: {e}") from e
        auth = state.get("auth") if isinstance(state, dict) else None
        return auth if isinstance(auth, dict) else {}

    def identity(self) -> Identity | None:
        """Return the stored identity, or None when nobody is logged in."""
        auth = self._auth_section()
        username = auth.get("username")
        if not username:
            return None
        return Identity(username=str(username), owner=auth.get("owner"))

    def require_identity(self) -> Identity:
        identity = self.identity()
        if identity is None:
            raise AuthenticationRequiredError()
        return identity

    def session_secret(self, username: str) -> str | None:
        """Resolve the session secret for ``username``; None if none is stored."""
        value = os.getenv(SESSION_SECRET_ENV_VAR)
        if value:
            logger.debug("Using session secret from environment")
            return value

        try:
            value = cast(str | None, keyring.get_password(KEYRING_SERVICE, username))
        except KeyringError as e:
            # Headless systems without a keyring backend fall through to the state file.
            logger.debug(f"Keyring not available: {e}")
            value = None
        if value:
            logger.debug(f"Retrieved session secret from keyring for {username}")
            return value

        secret = self._auth_section().get("sessionSecret")
        return str(secret) if secret else None
