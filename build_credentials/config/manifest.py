"""Project manifest (``app.json``) model and loader.

The manifest identifies the project on the credential service: ``slug`` names
the experience and the optional ``owner`` overrides the logged-in account as
the experience owner. Both the bare form and the form nested under an
``"expo"`` key are accepted.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from build_credentials.exceptions import ManifestInvalidError

MANIFEST_FILENAME = "app.json"

# Java package rules as enforced by the Play Store: at least two segments,
# each starting with a letter.
ANDROID_PACKAGE_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*(\.[a-zA-Z][a-zA-Z0-9_]*)+$")


def is_valid_package_name(package: str | None) -> bool:
    """Check an Android application id such as ``com.example.app``."""
    return bool(package) and ANDROID_PACKAGE_PATTERN.match(package) is not None


class AndroidManifestConfig(BaseModel):
    """Android section of the manifest."""

    model_config = ConfigDict(extra="ignore")

    package: str | None = Field(default=None, description="Android application id")


class ProjectManifest(BaseModel):
    """The subset of the project manifest the credential workflows need."""

    model_config = ConfigDict(extra="ignore")

    slug: str = Field(..., min_length=1, description="URL-friendly project name")
    owner: str | None = Field(default=None, description="Account owning the experience")
    name: str | None = Field(default=None, description="Display name")
    android: AndroidManifestConfig = Field(default_factory=AndroidManifestConfig)

    @property
    def android_package(self) -> str | None:
        return self.android.package


def load_manifest(project_dir: str | Path) -> ProjectManifest:
    """Read and validate ``app.json`` from the project directory.

    Raises:
        ManifestInvalidError: If the file is missing, is not a JSON object or
            lacks required fields such as ``slug``
    """
    manifest_path = Path(project_dir) / MANIFEST_FILENAME
    if not manifest_path.is_file():
        raise ManifestInvalidError(f"No {MANIFEST_FILENAME} found in {project_dir}")

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ManifestInvalidError(f"Cannot parse {manifest_path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("expo"), dict):
        data = data["expo"]
    if not isinstance(data, dict):
        raise ManifestInvalidError(f"{manifest_path} must contain a JSON object")

    try:
        return ProjectManifest.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ManifestInvalidError(f"{MANIFEST_FILENAME} is missing or has invalid fields: {fields}") from e
