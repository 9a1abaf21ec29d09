"""Interactive credential-resolution views and the runner that drives them.

Example:
    >>> from build_credentials.views import SetupKeystore, run_credentials_manager
    >>> await run_credentials_manager(context, SetupKeystore(context.experience_name))
"""

from build_credentials.views.android import open_view
from build_credentials.views.runner import ViewRunner, run_credentials_manager
from build_credentials.views.types import (
    DownloadKeystore,
    ManageExperience,
    RemoveKeystore,
    SetupKeystore,
    UpdateFcmKey,
    UpdateKeystore,
    View,
    ViewKind,
)

__all__ = [
    "DownloadKeystore",
    "ManageExperience",
    "RemoveKeystore",
    "SetupKeystore",
    "UpdateFcmKey",
    "UpdateKeystore",
    "View",
    "ViewKind",
    "ViewRunner",
    "open_view",
    "run_credentials_manager",
]
