"""Android build credentials: models, the remote store and local sources.

Key Exports:
    AndroidKeystore, AndroidCredentials, FcmCredentials: credential models
    CredentialStore: protocol every store implements
    ApiCredentialStore: store backed by the credential service REST API
    KeytoolGenerator: keystore generation and export via keytool
    SessionStore, Identity: the logged-in account and its session secret
"""

from build_credentials.credentials.api_store import ApiCredentialStore
from build_credentials.credentials.keytool import KeytoolGenerator
from build_credentials.credentials.local import keystore_from_environment, read_keystore_file
from build_credentials.credentials.models import AndroidCredentials, AndroidKeystore, FcmCredentials
from build_credentials.credentials.session import Identity, SessionStore
from build_credentials.credentials.store import CredentialStore

__all__ = [
    "AndroidCredentials",
    "AndroidKeystore",
    "ApiCredentialStore",
    "CredentialStore",
    "FcmCredentials",
    "Identity",
    "KeytoolGenerator",
    "SessionStore",
    "keystore_from_environment",
    "read_keystore_file",
]
