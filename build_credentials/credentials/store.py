"""Protocol for the remote credential store."""

from pathlib import Path
from typing import Protocol

from build_credentials.credentials.models import AndroidCredentials, AndroidKeystore


class CredentialStore(Protocol):
    """Interface the views use to reach the credential service.

    All operations are idempotent at the resource level: fetching an absent
    bundle returns None and deleting one is a no-op. Failures to reach the
    service raise RemoteOperationError and are never retried here.
    """

    async def fetch(self, experience_name: str) -> AndroidCredentials | None:
        """Retrieve the Android credentials stored for an experience.

        Args:
            experience_name: Experience identifier (e.g. '@jane/app')

        Returns:
            Stored credentials or None if nothing is stored

        Raises:
            RemoteOperationError: If the service cannot be reached or errors
        """
        ...

    async def generate(self, keystore_path: Path, package_id: str | None, experience_name: str) -> AndroidKeystore:
        """Generate a new upload keystore.

        Writes the keystore file to ``keystore_path``; the caller owns that
        file and must delete it after reading.

        Raises:
            RemoteOperationError: If generation fails
        """
        ...

    async def put(self, experience_name: str, keystore: AndroidKeystore) -> None:
        """Store (create or replace) the keystore of an experience.

        Raises:
            RemoteOperationError: If the service rejects or fails the update
        """
        ...

    async def delete(self, experience_name: str) -> None:
        """Delete all Android credentials of an experience.

        Raises:
            RemoteOperationError: If the service fails the deletion
        """
        ...

    async def put_push_key(self, experience_name: str, fcm_api_key: str) -> None:
        """Store the FCM server key of an experience.

        Raises:
            RemoteOperationError: If the service rejects or fails the update
        """
        ...
