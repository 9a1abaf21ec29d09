"""Pytest configuration and shared fixtures."""

import base64
import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from build_credentials.context import Context
from build_credentials.credentials.models import AndroidCredentials, AndroidKeystore, FcmCredentials
from build_credentials.credentials.session import Identity
from build_credentials.config.manifest import ProjectManifest
from build_credentials.exceptions import CancelledByOperatorError, RemoteOperationError

KEYSTORE_BYTES = b"\xfe\xed\xfe\xed-fake-jks-content"

CANCEL = object()
"""Scripted answer that makes the prompt raise CancelledByOperatorError."""


def make_keystore(**overrides: str) -> AndroidKeystore:
    values = {
        "keystore": base64.b64encode(KEYSTORE_BYTES).decode("ascii"),
        "keystore_password": "store-pass",
        "key_alias": "QGphbmUvYXBw",
        "key_password": "key-pass",
    }
    values.update(overrides)
    return AndroidKeystore(**values)


class FakeCredentialStore:
    """In-memory CredentialStore recording every call in order."""

    def __init__(self, credentials: dict[str, AndroidCredentials] | None = None) -> None:
        self.credentials: dict[str, AndroidCredentials] = dict(credentials or {})
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[str, Exception] = {}
        self.on_delete: Callable[[str], None] | None = None
        self.generated_paths: list[Path] = []
        self.generated_keystore = make_keystore(keystore_password="generated-pass", key_password="generated-key")

    def _record(self, operation: str, experience_name: str) -> None:
        self.calls.append((operation, experience_name))
        if operation in self.failures:
            raise self.failures[operation]

    @property
    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    async def fetch(self, experience_name: str) -> AndroidCredentials | None:
        self._record("fetch", experience_name)
        return self.credentials.get(experience_name)

    async def generate(self, keystore_path: Path, package_id: str | None, experience_name: str) -> AndroidKeystore:
        keystore_path.write_bytes(KEYSTORE_BYTES)
        self.generated_paths.append(keystore_path)
        self._record("generate", experience_name)
        return self.generated_keystore

    async def put(self, experience_name: str, keystore: AndroidKeystore) -> None:
        self._record("put", experience_name)
        previous = self.credentials.get(experience_name)
        push = previous.push_credentials if previous else None
        self.credentials[experience_name] = AndroidCredentials(experience_name, keystore, push)

    async def delete(self, experience_name: str) -> None:
        if self.on_delete is not None:
            self.on_delete(experience_name)
        self._record("delete", experience_name)
        self.credentials.pop(experience_name, None)

    async def put_push_key(self, experience_name: str, fcm_api_key: str) -> None:
        self._record("put_push_key", experience_name)
        previous = self.credentials.get(experience_name)
        keystore = previous.keystore if previous else None
        self.credentials[experience_name] = AndroidCredentials(experience_name, keystore, FcmCredentials(fcm_api_key))


class ScriptedPrompter:
    """PromptGateway answering from a script and recording what was asked."""

    def __init__(self, answers: Sequence[Any] = ()) -> None:
        self.answers = list(answers)
        self.questions: list[str] = []
        self.output: list[str] = []
        self.warnings: list[str] = []

    def _next(self, message: str) -> Any:
        self.questions.append(message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        answer = self.answers.pop(0)
        if answer is CANCEL:
            raise CancelledByOperatorError()
        return answer

    def echo(self, message: str = "", fg: str | None = None, bold: bool = False) -> None:
        self.output.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def confirm(self, message: str, default: bool = False) -> bool:
        return bool(self._next(message))

    def text(self, message: str, validate: Callable[[str], str | None] | None = None, hide_input: bool = False) -> str:
        while True:
            answer = self._next(message)
            if validate is None or validate(answer) is None:
                return answer

    def select(self, message: str, choices: Sequence[tuple[str, str]]) -> str:
        answer = self._next(message)
        assert answer in [value for value, _ in choices]
        return answer

    @property
    def text_output(self) -> str:
        return "\n".join(self.output + self.warnings)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Project directory with an app.json for slug 'app'."""
    directory = tmp_path / "project"
    directory.mkdir()
    (directory / "app.json").write_text(
        json.dumps({"expo": {"name": "App", "slug": "app", "android": {"package": "com.jane.app"}}})
    )
    return directory


@pytest.fixture
def identity() -> Identity:
    return Identity(username="jane")


@pytest.fixture
def manifest() -> ProjectManifest:
    return ProjectManifest(slug="app", android={"package": "com.jane.app"})


@pytest.fixture
def experience() -> str:
    return "@jane/app"


@pytest.fixture
def store() -> FakeCredentialStore:
    return FakeCredentialStore()


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def context(
    project_dir: Path,
    identity: Identity,
    manifest: ProjectManifest,
    store: FakeCredentialStore,
    prompter: ScriptedPrompter,
) -> Context:
    return Context(project_dir, identity, manifest, store, prompter)


@pytest.fixture
def stored_credentials(store: FakeCredentialStore, experience: str) -> AndroidCredentials:
    """A complete keystore stored for the experience."""
    credentials = AndroidCredentials(experience, make_keystore())
    store.credentials[experience] = credentials
    return credentials


@pytest.fixture
def remote_failure() -> RemoteOperationError:
    return RemoteOperationError("Credential service could not complete the request", status_code=500)
