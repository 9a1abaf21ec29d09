"""View kinds of the Android credential state machine.

Each view is a small dataclass tagged with a :class:`ViewKind`. Views hold the
data they need to make their decision; the behaviour for each kind lives in
one transition table in :mod:`build_credentials.views.android`.

Views are single-use. Values discovered while a view is open (the keystore a
download fetched, for example) are stored exactly once and read back through
properties that raise :class:`ViewNotOpenedError` before the view has run.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar

from build_credentials.credentials.models import AndroidKeystore
from build_credentials.exceptions import ViewNotOpenedError, WorkflowError


class ViewKind(str, Enum):
    """Roles a view can play for an experience."""

    SETUP_KEYSTORE = "setup-keystore"
    UPDATE_KEYSTORE = "update-keystore"
    REMOVE_KEYSTORE = "remove-keystore"
    DOWNLOAD_KEYSTORE = "download-keystore"
    UPDATE_FCM_KEY = "update-fcm-key"
    MANAGE_EXPERIENCE = "manage-experience"

    def __str__(self) -> str:
        return self.value


class _NotPopulated:
    def __repr__(self) -> str:
        return "<not populated>"


NOT_POPULATED = _NotPopulated()


@dataclass(eq=False)
class View:
    """Base of all views: the experience they act on plus single-use bookkeeping."""

    kind: ClassVar[ViewKind]

    experience_name: str
    opened: bool = field(default=False, init=False, repr=False)

    @property
    def identity(self) -> tuple[str, ViewKind]:
        return (self.experience_name, self.kind)


@dataclass(eq=False)
class _KeystoreResultView(View):
    """A view that records which keystore it ended up with."""

    _keystore: AndroidKeystore | None | _NotPopulated = field(default=NOT_POPULATED, init=False, repr=False)

    @property
    def keystore(self) -> AndroidKeystore | None:
        """Keystore found by the view, or None if there was no usable one."""
        if isinstance(self._keystore, _NotPopulated):
            raise ViewNotOpenedError("keystore")
        return self._keystore

    def populate_keystore(self, keystore: AndroidKeystore | None) -> None:
        if not isinstance(self._keystore, _NotPopulated):
            raise WorkflowError(f"{self.kind} view already recorded its keystore")
        self._keystore = keystore


@dataclass(eq=False)
class SetupKeystore(_KeystoreResultView):
    """Make sure a complete keystore is stored; route to UpdateKeystore otherwise."""

    kind: ClassVar[ViewKind] = ViewKind.SETUP_KEYSTORE


@dataclass(eq=False)
class UpdateKeystore(View):
    """Replace the stored keystore with an uploaded or generated one."""

    kind: ClassVar[ViewKind] = ViewKind.UPDATE_KEYSTORE


@dataclass(eq=False)
class RemoveKeystore(View):
    """Back up, then permanently delete the stored credentials after confirmation."""

    kind: ClassVar[ViewKind] = ViewKind.REMOVE_KEYSTORE


@dataclass(eq=False)
class DownloadKeystore(_KeystoreResultView):
    """Write the stored keystore to disk.

    Attributes:
        output_path: Destination file; defaults to ``<slug>.bak.jks`` in the project
        should_log: Print the secrets afterwards; None asks the operator
        backup_existing: Rename an existing destination to ``OLD_<n>_<name>``
            instead of unlinking it
    """

    kind: ClassVar[ViewKind] = ViewKind.DOWNLOAD_KEYSTORE

    output_path: Path | None = None
    should_log: bool | None = None
    backup_existing: bool = True


@dataclass(eq=False)
class UpdateFcmKey(View):
    """Store a new FCM server key."""

    kind: ClassVar[ViewKind] = ViewKind.UPDATE_FCM_KEY


@dataclass(eq=False)
class ManageExperience(View):
    """Show stored credentials and let the operator pick what to change."""

    kind: ClassVar[ViewKind] = ViewKind.MANAGE_EXPERIENCE
