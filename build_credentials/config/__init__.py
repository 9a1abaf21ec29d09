"""Configuration for the build-credentials manager.

This package provides type-safe settings management using Pydantic and the
project manifest model read from ``app.json``.

Key Components:
    - CredentialsSettings: service URL, timeouts, session state location
    - ProjectManifest: slug, owner and Android package of the project

Example:
    >>> from build_credentials.config import CredentialsSettings, load_manifest
    >>> settings = CredentialsSettings()
    >>> manifest = load_manifest("/path/to/project")
"""

from build_credentials.config.manifest import AndroidManifestConfig, ProjectManifest, load_manifest
from build_credentials.config.settings import CredentialsSettings

__all__ = ["AndroidManifestConfig", "CredentialsSettings", "ProjectManifest", "load_manifest"]
