"""Transition table of the Android credential views.

:func:`open_view` is the single transition function of the state machine:
given a view and the context it performs that view's step and returns the
next view, or None when the workflow is finished. Handlers for each
:class:`ViewKind` are registered in ``_HANDLERS``.

Transitions:
    SetupKeystore      -> None (complete keystore stored) | UpdateKeystore
    UpdateKeystore     -> None
    RemoveKeystore     -> None (a DownloadKeystore backup runs before deletion)
    DownloadKeystore   -> None
    UpdateFcmKey       -> None
    ManageExperience   -> UpdateKeystore | UpdateFcmKey | DownloadKeystore
"""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import structlog

from build_credentials.config.manifest import is_valid_package_name
from build_credentials.context import Context
from build_credentials.credentials.local import keystore_from_environment, read_keystore_file
from build_credentials.credentials.models import AndroidCredentials, AndroidKeystore
from build_credentials.exceptions import CancelledByOperatorError, RemoteOperationError, ViewReusedError
from build_credentials.prompts import non_empty
from build_credentials.utils.files import maybe_rename_existing_file, remove_if_exists
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

log = structlog.get_logger(__name__)

Handler = Callable[[Any, Context], Awaitable[View | None]]


async def open_view(view: View, context: Context) -> View | None:
    """Run one step of the workflow and return the next view.

    Raises:
        ViewReusedError: If the view has already been opened
    """
    if view.opened:
        raise ViewReusedError(f"{view.kind} view for {view.experience_name} was already opened")
    view.opened = True
    log.debug("view_opened", view=str(view.kind), experience=view.experience_name)
    return await _HANDLERS[view.kind](view, context)


# =============================================================================
# Setup
# =============================================================================


async def _open_setup_keystore(view: SetupKeystore, context: Context) -> View | None:
    credentials = await context.fetch_credentials(view.experience_name)
    if credentials is not None and credentials.usable_keystore is not None:
        view.populate_keystore(credentials.usable_keystore)
        return None

    keystore = credentials.keystore if credentials else None
    if keystore is not None:
        # A partial bundle can never sign a build; treat it as absent.
        log.warning("incomplete_keystore", experience=view.experience_name, missing=keystore.missing_fields)
        context.prompter.warn(
            f"The stored keystore for {view.experience_name} is incomplete "
            f"(missing: {', '.join(keystore.missing_fields)}) and has to be replaced."
        )
    view.populate_keystore(None)
    return UpdateKeystore(view.experience_name)


# =============================================================================
# Update
# =============================================================================


async def _open_update_keystore(view: UpdateKeystore, context: Context) -> View | None:
    keystore = await _provide_or_generate(view, context)
    await context.store.put(view.experience_name, keystore)
    context.remember_keystore(view.experience_name, keystore)
    context.prompter.echo("Updated Keystore successfully", fg="green")
    return None


async def _provide_or_generate(view: UpdateKeystore, context: Context) -> AndroidKeystore:
    from_env = keystore_from_environment(context.options.keystore_path, context.options.keystore_alias)
    if from_env is not None:
        return from_env

    choice = context.prompter.select(
        "Would you like to upload a keystore or have us generate one for you?\n"
        "If you don't know what this means, let us handle it! :)",
        [
            ("generate", "Generate new keystore"),
            ("upload", "I want to upload my own keystore"),
        ],
    )
    if choice == "upload":
        return _ask_for_keystore_file(context)

    confirmed = context.prompter.confirm(
        f"Generate a new upload keystore for {view.experience_name}? "
        "Builds signed with it cannot update apps signed with a different key.",
        default=True,
    )
    if not confirmed:
        raise CancelledByOperatorError("Keystore generation was declined")
    return await _generate_keystore(view, context)


def _ask_for_keystore_file(context: Context) -> AndroidKeystore:
    def resolve(value: str) -> Path:
        path = Path(value.strip()).expanduser()
        return path if path.is_absolute() else context.project_dir / path

    def existing_file(value: str) -> str | None:
        if not value.strip():
            return "Path to keystore can't be empty"
        return None if resolve(value).is_file() else "File does not exist."

    prompter = context.prompter
    keystore_path = resolve(prompter.text("Path to keystore", validate=existing_file))
    keystore_password = prompter.text(
        "Keystore password", validate=non_empty("Keystore password"), hide_input=True
    )
    key_alias = prompter.text("Key alias", validate=non_empty("Key alias"))
    key_password = prompter.text("Key password", validate=non_empty("Key password"), hide_input=True)
    return read_keystore_file(keystore_path, keystore_password, key_alias, key_password)


async def _generate_keystore(view: UpdateKeystore, context: Context) -> AndroidKeystore:
    package_id = _resolve_package_id(context)
    tmp_keystore = context.project_dir / f"{context.slug}_tmp.jks"
    remove_if_exists(tmp_keystore)
    try:
        return await context.store.generate(tmp_keystore, package_id, view.experience_name)
    except RemoteOperationError:
        context.prompter.warn(
            "If you don't provide your own Android keystore, it will be generated on our servers "
            "during the next build"
        )
        raise
    finally:
        remove_if_exists(tmp_keystore)


def _resolve_package_id(context: Context) -> str | None:
    package = context.manifest.android_package
    if package is None or is_valid_package_name(package):
        return package

    context.prompter.warn(f"'{package}' in app.json is not a valid Android package name.")
    return context.prompter.text(
        "Android package name (e.g. com.example.app)",
        validate=lambda value: None if is_valid_package_name(value) else "Invalid Android package name",
    )


# =============================================================================
# Remove
# =============================================================================


async def _open_remove_keystore(view: RemoveKeystore, context: Context) -> View | None:
    _display_removal_warning(context)
    confirmed = context.prompter.confirm(
        "Permanently delete the Android build credentials from our servers?", default=False
    )
    if not confirmed:
        context.prompter.echo("Keystore was not removed")
        return None

    context.prompter.echo("Backing up your Android keystore now...")
    backup = DownloadKeystore(
        view.experience_name,
        output_path=context.project_dir / f"{context.slug}.jks",
        should_log=True,
    )
    # Runs to completion before the delete; any failure here aborts the removal.
    await open_view(backup, context)

    await context.store.delete(view.experience_name)
    context.forget(view.experience_name)
    log.warning("credentials_removed", experience=view.experience_name)
    context.prompter.warn("Removed existing credentials from our servers")
    return None


def _display_removal_warning(context: Context) -> None:
    prompter = context.prompter
    prompter.echo()
    prompter.warn(
        "Clearing your Android build credentials from our build servers is a PERMANENT and IRREVERSIBLE action."
    )
    prompter.warn(
        "Android keystores must be identical to the one previously used to submit your app to the Google Play Store."
    )
    prompter.echo()
    prompter.warn("Your keystore will be backed up to your current directory if you continue.")
    prompter.echo()


# =============================================================================
# Download
# =============================================================================


async def _open_download_keystore(view: DownloadKeystore, context: Context) -> View | None:
    output_path = view.output_path or context.project_dir / f"{context.slug}.bak.jks"
    keystore = await context.fetch_keystore(view.experience_name)
    if keystore is None:
        view.populate_keystore(None)
        context.prompter.warn("There is no valid Keystore defined for this app")
        return None
    # Decoded before any file on disk is touched.
    data = keystore.keystore_bytes()
    view.populate_keystore(keystore)

    should_log = view.should_log
    if should_log is None:
        should_log = context.prompter.confirm("Do you want to display the Android Keystore credentials?")

    if view.backup_existing:
        renamed = maybe_rename_existing_file(output_path)
        if renamed is not None:
            context.prompter.echo(
                f'A file already exists at "{output_path}"\n  Renaming the existing file to {renamed.name}'
            )
    else:
        remove_if_exists(output_path)

    context.prompter.echo(f"Saving Keystore to {output_path}", fg="green")
    output_path.write_bytes(data)

    if should_log:
        context.prompter.echo(
            "Keystore credentials\n"
            f"  Keystore password: {keystore.keystore_password}\n"
            f"  Key alias:         {keystore.key_alias}\n"
            f"  Key password:      {keystore.key_password}\n"
            "\n"
            f"  Path to Keystore:  {output_path}"
        )
    return None


# =============================================================================
# Push key
# =============================================================================


async def _open_update_fcm_key(view: UpdateFcmKey, context: Context) -> View | None:
    fcm_api_key = context.prompter.text("FCM Api Key", validate=non_empty("FCM Api Key"))
    await context.store.put_push_key(view.experience_name, fcm_api_key.strip())
    context.forget(view.experience_name)
    context.prompter.echo("Updated successfully", fg="green")
    return None


# =============================================================================
# Manage
# =============================================================================


def _mask(secret: str) -> str:
    return f"****{secret[-4:]}" if len(secret) > 8 else "****"


def _display_credentials(context: Context, credentials: AndroidCredentials) -> None:
    prompter = context.prompter
    prompter.echo(f"Android credentials for {credentials.experience_name}", bold=True)
    if credentials.keystore is None:
        prompter.echo("  Upload Keystore: none")
    elif credentials.keystore.is_complete:
        prompter.echo(f"  Upload Keystore: key alias {credentials.keystore.key_alias}")
    else:
        prompter.echo(f"  Upload Keystore: incomplete (missing {', '.join(credentials.keystore.missing_fields)})")
    if credentials.push_credentials is None:
        prompter.echo("  FCM Api Key:     none")
    else:
        prompter.echo(f"  FCM Api Key:     {_mask(credentials.push_credentials.fcm_api_key)}")


async def _open_manage_experience(view: ManageExperience, context: Context) -> View | None:
    credentials = await context.fetch_credentials(view.experience_name)
    context.prompter.echo()
    if credentials is None:
        context.prompter.echo(f"No credentials available for {view.experience_name} experience.")
    else:
        _display_credentials(context, credentials)
    context.prompter.echo()

    action = context.prompter.select(
        "What do you want to do?",
        [
            ("update-keystore", "Update Upload Keystore"),
            ("update-fcm-key", "Update FCM Api Key"),
            ("fetch-keystore", "Download Keystore from the servers"),
        ],
    )
    if action == "update-keystore":
        return UpdateKeystore(view.experience_name)
    if action == "update-fcm-key":
        return UpdateFcmKey(view.experience_name)
    return DownloadKeystore(view.experience_name)


_HANDLERS: dict[ViewKind, Handler] = {
    ViewKind.SETUP_KEYSTORE: _open_setup_keystore,
    ViewKind.UPDATE_KEYSTORE: _open_update_keystore,
    ViewKind.REMOVE_KEYSTORE: _open_remove_keystore,
    ViewKind.DOWNLOAD_KEYSTORE: _open_download_keystore,
    ViewKind.UPDATE_FCM_KEY: _open_update_fcm_key,
    ViewKind.MANAGE_EXPERIENCE: _open_manage_experience,
}
