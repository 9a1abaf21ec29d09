"""Filesystem helpers for keystore backups and staging files."""

from pathlib import Path

import structlog

log = structlog.get_logger(__name__)


def backup_path_for(path: Path) -> Path:
    """First free ``OLD_<n>_<name>`` sibling of ``path``, counting from 1."""
    num = 1
    while (candidate := path.with_name(f"OLD_{num}_{path.name}")).exists():
        num += 1
    return candidate


def maybe_rename_existing_file(path: Path) -> Path | None:
    """Move an existing file out of the way instead of overwriting it.

    Returns:
        The path the old file was renamed to, or None if nothing existed
    """
    if not path.exists():
        return None
    target = backup_path_for(path)
    path.rename(target)
    log.info("existing_file_renamed", path=str(path), renamed_to=str(target))
    return target


def remove_if_exists(path: Path) -> None:
    path.unlink(missing_ok=True)
