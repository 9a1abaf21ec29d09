"""Credential store backed by the credential service REST API."""

from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from build_credentials.credentials.keytool import KeytoolGenerator
from build_credentials.credentials.models import AndroidCredentials, AndroidKeystore
from build_credentials.exceptions import RemoteOperationError
from build_credentials.utils.connection_pool import HTTPConnectionPool

log = structlog.get_logger(__name__)

SESSION_HEADER = "expo-session"


def _experience_path(experience_name: str) -> str:
    # '@' and '/' are part of the resource path, everything else is escaped.
    return quote(experience_name, safe="@/")


class ApiCredentialStore:
    """Android credential storage on the remote service.

    Keystore generation happens locally through keytool; only the resulting
    bundle is sent to the service.

    Example:
        >>> store = ApiCredentialStore("https://exp.host/--/api/v2/", session_secret="...")
        >>> credentials = await store.fetch("@jane/app")
    """

    def __init__(
        self,
        base_url: str,
        session_secret: str | None = None,
        timeout: float = 30.0,
        generator: KeytoolGenerator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if session_secret:
            headers[SESSION_HEADER] = session_secret
        self.base_url = base_url
        self.generator = generator or KeytoolGenerator()
        self._pool = HTTPConnectionPool(base_url=base_url, timeout=timeout, headers=headers, transport=transport)

    async def close(self) -> None:
        await self._pool.close()

    async def __aenter__(self) -> "ApiCredentialStore":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._pool.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteOperationError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        raise RemoteOperationError(
            f"Credential service could not {action}",
            status_code=response.status_code,
            response_text=response.text,
        )

    @staticmethod
    def _payload(response: httpx.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteOperationError("Credential service returned malformed JSON", response.status_code) from e
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        return body if isinstance(body, dict) else {}

    async def fetch(self, experience_name: str) -> AndroidCredentials | None:
        """Fetch stored credentials; None when the service has none."""
        response = await self._send("GET", f"credentials/android/{_experience_path(experience_name)}")
        if response.status_code == 404:
            log.info("credentials_not_found", experience=experience_name)
            return None
        self._raise_for_status(response, "fetch credentials")

        payload = self._payload(response)
        if not payload:
            log.info("credentials_not_found", experience=experience_name)
            return None
        credentials = AndroidCredentials.from_api(experience_name, payload)
        log.info(
            "credentials_fetched",
            experience=experience_name,
            has_keystore=credentials.keystore is not None,
            has_push_key=credentials.push_credentials is not None,
        )
        return None if credentials.is_empty else credentials

    async def generate(self, keystore_path: Path, package_id: str | None, experience_name: str) -> AndroidKeystore:
        return await self.generator.generate(keystore_path, package_id, experience_name)

    async def put(self, experience_name: str, keystore: AndroidKeystore) -> None:
        response = await self._send(
            "PUT",
            f"credentials/android/keystore/{_experience_path(experience_name)}",
            json={"keystore": keystore.to_api()},
        )
        self._raise_for_status(response, "update the keystore")
        log.info("keystore_uploaded", experience=experience_name)

    async def delete(self, experience_name: str) -> None:
        response = await self._send("DELETE", f"credentials/android/{_experience_path(experience_name)}")
        if response.status_code == 404:
            log.info("credentials_already_absent", experience=experience_name)
            return
        self._raise_for_status(response, "delete credentials")
        log.info("credentials_deleted", experience=experience_name)

    async def put_push_key(self, experience_name: str, fcm_api_key: str) -> None:
        response = await self._send(
            "PUT",
            f"credentials/android/push/{_experience_path(experience_name)}",
            json={"fcmApiKey": fcm_api_key},
        )
        self._raise_for_status(response, "update the FCM key")
        log.info("push_key_uploaded", experience=experience_name)
