"""Command-level credential workflows.

Each function takes an initialized :class:`Context`, picks the initial view
for its command and runs it. Functions that need a keystore on disk only for
the duration of the command stage it next to the project and remove it in a
``finally`` block.
"""

import structlog

from build_credentials.context import Context
from build_credentials.credentials.keytool import KeytoolGenerator
from build_credentials.credentials.models import AndroidKeystore
from build_credentials.exceptions import WorkflowError
from build_credentials.utils.files import maybe_rename_existing_file, remove_if_exists
from build_credentials.views import (
    DownloadKeystore,
    ManageExperience,
    RemoveKeystore,
    SetupKeystore,
    UpdateFcmKey,
    UpdateKeystore,
    run_credentials_manager,
)

log = structlog.get_logger(__name__)


def _generator_for(context: Context) -> KeytoolGenerator:
    return getattr(context.store, "generator", None) or KeytoolGenerator()


async def prepare_build_credentials(context: Context, clear_credentials: bool = False) -> AndroidKeystore:
    """Ensure exactly one complete keystore is stored and return it.

    With ``clear_credentials`` the stored credentials are first backed up and
    removed (after confirmation), so a new keystore gets set up. When the
    context carries ``--keystore-path`` or ``--keystore-alias`` the keystore
    they name is uploaded even if a complete one is already stored.

    Raises:
        ValidationFailedError: If the keystore options are only partially provided
        WorkflowError: If the workflow ended without a complete keystore
    """
    experience = context.experience_name
    if clear_credentials:
        await run_credentials_manager(context, RemoveKeystore(experience))

    if context.options.keystore_path or context.options.keystore_alias:
        # Keystore options always replace the stored bundle.
        await run_credentials_manager(context, UpdateKeystore(experience))
    else:
        await run_credentials_manager(context, SetupKeystore(experience))

    keystore = await context.fetch_keystore(experience)
    if keystore is None:
        raise WorkflowError(f"No valid Android keystore is available for {experience}")
    log.info("build_credentials_ready", experience=experience)
    return keystore


async def fetch_android_keystore(context: Context) -> AndroidKeystore | None:
    """Download the keystore to ``<slug>.jks`` and print its secrets."""
    view = DownloadKeystore(
        context.experience_name,
        output_path=context.project_dir / f"{context.slug}.jks",
        should_log=True,
    )
    await run_credentials_manager(context, view)
    return view.keystore


async def fetch_android_hashes(context: Context) -> dict[str, str]:
    """Print the upload certificate fingerprints of the stored keystore."""
    staging_path = context.project_dir / f"{context.slug}.tmp.jks"
    try:
        view = DownloadKeystore(
            context.experience_name,
            output_path=staging_path,
            should_log=False,
            backup_existing=False,
        )
        await run_credentials_manager(context, view)
        if view.keystore is None:
            return {}

        fingerprints = await _generator_for(context).certificate_fingerprints(staging_path, view.keystore)
        for algorithm, value in fingerprints.items():
            context.prompter.echo(f"{algorithm} Fingerprint: {value}")
        context.prompter.echo(
            "\nNote: if you are using Google Play signing, this app will be signed with a different key "
            "after publishing to the store, and you'll need to use the hashes displayed in the Google Play console."
        )
        return fingerprints
    finally:
        remove_if_exists(staging_path)


async def fetch_android_upload_cert(context: Context) -> None:
    """Export the upload certificate to ``<slug>_upload_cert.pem``."""
    staging_path = context.project_dir / f"{context.slug}.tmp.jks"
    cert_path = context.project_dir / f"{context.slug}_upload_cert.pem"
    try:
        view = DownloadKeystore(
            context.experience_name,
            output_path=staging_path,
            should_log=False,
            backup_existing=False,
        )
        await run_credentials_manager(context, view)
        if view.keystore is None:
            return

        renamed = maybe_rename_existing_file(cert_path)
        if renamed is not None:
            context.prompter.echo(
                f'A file already exists at "{cert_path}"\n  Renaming the existing file to {renamed.name}'
            )
        context.prompter.echo(f"Writing upload key to {cert_path}")
        await _generator_for(context).export_certificate_pem(staging_path, view.keystore, cert_path)
    finally:
        remove_if_exists(staging_path)


async def manage_android_credentials(context: Context) -> None:
    await run_credentials_manager(context, ManageExperience(context.experience_name))


async def update_push_key(context: Context) -> None:
    await run_credentials_manager(context, UpdateFcmKey(context.experience_name))


async def clear_android_credentials(context: Context) -> None:
    await run_credentials_manager(context, RemoveKeystore(context.experience_name))
