"""Per-command session context.

A :class:`Context` is built once when a command starts and handed to every
view the runner opens. It carries the authenticated identity, the project
manifest, the credential store and the prompt gateway, plus the only mutable
state of a run: the cache of credentials fetched so far.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from build_credentials.config.manifest import ProjectManifest, load_manifest
from build_credentials.config.settings import CredentialsSettings
from build_credentials.credentials.api_store import ApiCredentialStore
from build_credentials.credentials.keytool import KeytoolGenerator
from build_credentials.credentials.models import AndroidCredentials, AndroidKeystore
from build_credentials.credentials.session import Identity, SessionStore
from build_credentials.credentials.store import CredentialStore
from build_credentials.prompts import ClickPromptGateway, PromptGateway

log = structlog.get_logger(__name__)


def experience_name(manifest: ProjectManifest, identity: Identity) -> str:
    """Full experience identifier ``@owner/slug``.

    The manifest owner wins over the logged-in account so that projects
    belonging to an organization resolve identically for every member.
    """
    owner = manifest.owner or identity.username
    return f"@{owner}/{manifest.slug}"


@dataclass(frozen=True)
class ContextOptions:
    """Command options the views consult.

    Attributes:
        keystore_path: Keystore file to upload non-interactively
        keystore_alias: Key alias inside that keystore
    """

    keystore_path: str | None = None
    keystore_alias: str | None = None


class Context:
    """Session state shared by the views of one command invocation.

    Views run strictly one after another, so the fetch cache needs no locking.

    Attributes:
        project_dir: Directory holding app.json; backups are written here
        identity: Logged-in account
        manifest: Parsed project manifest
        store: Credential store all remote calls go through
        prompter: Operator prompt gateway
        options: Command options relevant to the views
    """

    def __init__(
        self,
        project_dir: Path,
        identity: Identity,
        manifest: ProjectManifest,
        store: CredentialStore,
        prompter: PromptGateway,
        options: ContextOptions | None = None,
    ) -> None:
        self.project_dir = project_dir
        self.identity = identity
        self.manifest = manifest
        self.store = store
        self.prompter = prompter
        self.options = options or ContextOptions()
        self._credentials: dict[str, AndroidCredentials | None] = {}

    @classmethod
    def init(
        cls,
        project_dir: str | Path,
        *,
        settings: CredentialsSettings | None = None,
        store: CredentialStore | None = None,
        prompter: PromptGateway | None = None,
        session: SessionStore | None = None,
        options: ContextOptions | None = None,
    ) -> "Context":
        """Resolve manifest and identity and assemble the context.

        Raises:
            ManifestInvalidError: If app.json is missing or lacks a slug
            AuthenticationRequiredError: If nobody is logged in
        """
        settings = settings or CredentialsSettings()
        project_path = Path(project_dir).resolve()
        manifest = load_manifest(project_path)
        session = session or SessionStore(settings.state_file)
        identity = session.require_identity()

        if store is None:
            store = ApiCredentialStore(
                settings.api_base_url,
                session_secret=session.session_secret(identity.username),
                timeout=settings.request_timeout,
                generator=KeytoolGenerator(settings.keytool_path),
            )

        context = cls(
            project_dir=project_path,
            identity=identity,
            manifest=manifest,
            store=store,
            prompter=prompter or ClickPromptGateway(),
            options=options,
        )
        log.debug("context_initialized", experience=context.experience_name, project_dir=str(project_path))
        return context

    @property
    def experience_name(self) -> str:
        return experience_name(self.manifest, self.identity)

    @property
    def slug(self) -> str:
        return self.manifest.slug

    async def fetch_credentials(self, experience: str) -> AndroidCredentials | None:
        """Fetch credentials once per run; later calls reuse the cached result."""
        if experience not in self._credentials:
            self._credentials[experience] = await self.store.fetch(experience)
        return self._credentials[experience]

    async def fetch_keystore(self, experience: str) -> AndroidKeystore | None:
        """The stored keystore if it is complete; None otherwise."""
        credentials = await self.fetch_credentials(experience)
        return credentials.usable_keystore if credentials else None

    def remember_keystore(self, experience: str, keystore: AndroidKeystore) -> None:
        """Record a keystore just written to the store."""
        previous = self._credentials.get(experience)
        push = previous.push_credentials if previous else None
        self._credentials[experience] = AndroidCredentials(experience, keystore, push)

    def forget(self, experience: str) -> None:
        """Drop cached credentials so the next read goes to the store."""
        self._credentials.pop(experience, None)

    async def close(self) -> None:
        close: Any = getattr(self.store, "close", None)
        if close is not None:
            await close()
