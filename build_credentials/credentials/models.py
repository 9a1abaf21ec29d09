"""
Credential models for Android builds.

These dataclasses are the normalized internal representation of what the
credential service stores for an experience. Conversion to and from the
service's camelCase JSON lives here so the rest of the package never touches
raw payloads.

Example:
    Checking whether a fetched bundle can sign a build::

        credentials = AndroidCredentials.from_api(experience, payload)
        if credentials.usable_keystore is not None:
            ...
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Any

from build_credentials.exceptions import ValidationFailedError


@dataclass(frozen=True)
class AndroidKeystore:
    """Upload keystore bundle.

    ``keystore`` holds the binary JKS file base64 encoded, which is how the
    service transports it.
    """

    keystore: str
    keystore_password: str
    key_alias: str
    key_password: str
    keystore_type: str = "JKS"

    @property
    def is_complete(self) -> bool:
        """All four secret fields are present; anything less is unusable."""
        return all((self.keystore, self.keystore_password, self.key_alias, self.key_password))

    @property
    def missing_fields(self) -> list[str]:
        names = ("keystore", "keystore_password", "key_alias", "key_password")
        return [name for name in names if not getattr(self, name)]

    def keystore_bytes(self) -> bytes:
        """Decode the JKS file.

        Raises:
            ValidationFailedError: If the stored value is not valid base64
        """
        try:
            return base64.b64decode("".join(self.keystore.split()), validate=True)
        except binascii.Error as e:
            raise ValidationFailedError(
                f"Stored keystore is not valid base64 ({e})",
                suggestion="Upload the keystore again with 'buildcreds manage'",
            ) from e

    @classmethod
    def from_file_bytes(
        cls,
        data: bytes,
        keystore_password: str,
        key_alias: str,
        key_password: str,
    ) -> "AndroidKeystore":
        return cls(
            keystore=base64.b64encode(data).decode("ascii"),
            keystore_password=keystore_password,
            key_alias=key_alias,
            key_password=key_password,
        )

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "AndroidKeystore | None":
        """Build from the service payload; returns None for an empty payload."""
        if not data:
            return None
        return cls(
            keystore=data.get("keystore") or "",
            keystore_password=data.get("keystorePassword") or "",
            key_alias=data.get("keyAlias") or "",
            key_password=data.get("keyPassword") or "",
            keystore_type=data.get("keystoreType") or "JKS",
        )

    def to_api(self) -> dict[str, str]:
        return {
            "keystore": self.keystore,
            "keystorePassword": self.keystore_password,
            "keyAlias": self.key_alias,
            "keyPassword": self.key_password,
            "keystoreType": self.keystore_type,
        }

    def __repr__(self) -> str:
        # Secrets stay out of tracebacks and logs.
        return f"AndroidKeystore(key_alias={self.key_alias!r}, complete={self.is_complete})"


@dataclass(frozen=True)
class FcmCredentials:
    """Firebase Cloud Messaging server key."""

    fcm_api_key: str

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "FcmCredentials | None":
        if not data or not data.get("fcmApiKey"):
            return None
        return cls(fcm_api_key=data["fcmApiKey"])


@dataclass(frozen=True)
class AndroidCredentials:
    """Everything the service stores for one experience on Android."""

    experience_name: str
    keystore: AndroidKeystore | None = None
    push_credentials: FcmCredentials | None = None

    @property
    def usable_keystore(self) -> AndroidKeystore | None:
        """The keystore when it is complete, otherwise None."""
        if self.keystore is not None and self.keystore.is_complete:
            return self.keystore
        return None

    @property
    def is_empty(self) -> bool:
        return self.keystore is None and self.push_credentials is None

    @classmethod
    def from_api(cls, experience_name: str, data: dict[str, Any]) -> "AndroidCredentials":
        return cls(
            experience_name=data.get("experienceName") or experience_name,
            keystore=AndroidKeystore.from_api(data.get("keystore")),
            push_credentials=FcmCredentials.from_api(data.get("pushCredentials")),
        )
