"""Keystore generation and export through the JDK ``keytool`` executable.

Every operation shells out with :func:`run_command`, so a missing JDK or a
rejected password surfaces as :class:`KeytoolError` instead of a raw
``CalledProcessError``.
"""

import base64
import re
import secrets
import subprocess
from pathlib import Path

import structlog

from build_credentials.credentials.models import AndroidKeystore
from build_credentials.exceptions import KeytoolError
from build_credentials.utils.async_subprocess import run_command

log = structlog.get_logger(__name__)

FINGERPRINT_PATTERN = re.compile(r"^\s*(MD5|SHA1|SHA-1|SHA256|SHA-256):\s*([0-9A-F:]+)\s*$", re.MULTILINE)


def _escape_dname(value: str) -> str:
    return value.replace("\\", "\\\\").replace(",", "\\,")


class KeytoolGenerator:
    """Generate, inspect and export upload keystores.

    Example:
        >>> generator = KeytoolGenerator()
        >>> keystore = await generator.generate(Path("app_tmp.jks"), "com.jane.app", "@jane/app")
    """

    def __init__(self, keytool_path: str = "keytool") -> None:
        self.keytool_path = keytool_path

    async def _run(self, *args: str) -> str:
        try:
            stdout, _, _ = await run_command(self.keytool_path, *args)
        except FileNotFoundError as e:
            raise KeytoolError(
                f"'{self.keytool_path}' not found. Install a JDK and make sure keytool is on PATH"
            ) from e
        except subprocess.CalledProcessError as e:
            raise KeytoolError("keytool failed", returncode=e.returncode, stderr=e.stderr) from e
        return stdout

    async def generate(self, keystore_path: Path, package_id: str | None, experience_name: str) -> AndroidKeystore:
        """Create a new RSA upload key in a fresh JKS file at ``keystore_path``.

        The file is left on disk for the caller to read and remove.
        """
        keystore_password = secrets.token_hex(16)
        key_password = secrets.token_hex(16)
        key_alias = base64.b64encode(experience_name.encode("utf-8")).decode("ascii")
        dname = f"CN={_escape_dname(experience_name)}"
        if package_id:
            dname = f"{dname},O={_escape_dname(package_id)}"

        log.info("keystore_generation_started", experience=experience_name)
        await self._run(
            "-genkey",
            "-v",
            "-storetype",
            "JKS",
            "-storepass",
            keystore_password,
            "-keypass",
            key_password,
            "-keystore",
            str(keystore_path),
            "-alias",
            key_alias,
            "-keyalg",
            "RSA",
            "-keysize",
            "2048",
            "-validity",
            "10000",
            "-dname",
            dname,
        )

        try:
            data = keystore_path.read_bytes()
        except OSError as e:
            raise KeytoolError(f"keytool did not produce {keystore_path}") from e

        log.info("keystore_generation_finished", experience=experience_name)
        return AndroidKeystore.from_file_bytes(data, keystore_password, key_alias, key_password)

    async def certificate_fingerprints(self, keystore_path: Path, keystore: AndroidKeystore) -> dict[str, str]:
        """Return the upload certificate fingerprints keyed by algorithm."""
        output = await self._run(
            "-list",
            "-v",
            "-keystore",
            str(keystore_path),
            "-storepass",
            keystore.keystore_password,
            "-alias",
            keystore.key_alias,
        )
        fingerprints: dict[str, str] = {}
        for algorithm, value in FINGERPRINT_PATTERN.findall(output):
            fingerprints[algorithm.replace("-", "")] = value
        if not fingerprints:
            raise KeytoolError("keytool output did not contain any certificate fingerprints")
        return fingerprints

    async def export_certificate_pem(self, keystore_path: Path, keystore: AndroidKeystore, output_path: Path) -> None:
        """Write the upload certificate in PEM form to ``output_path``."""
        await self._run(
            "-exportcert",
            "-rfc",
            "-keystore",
            str(keystore_path),
            "-storepass",
            keystore.keystore_password,
            "-alias",
            keystore.key_alias,
            "-file",
            str(output_path),
        )
        log.info("upload_certificate_exported", path=str(output_path))
