"""Custom exception hierarchy for the build-credentials manager.

This module defines a structured exception hierarchy that lets the view layer
tell recoverable conditions (missing or invalid credentials) apart from fatal
ones (no login, broken manifest, remote failures) and lets the CLI turn every
one of them into a readable message.

Exception Hierarchy:
    BuildCredentialsError (base)
    ├── ConfigurationError
    ├── AuthenticationRequiredError
    ├── ManifestInvalidError
    ├── CredentialError
    │   └── ValidationFailedError
    ├── RemoteOperationError
    │   └── KeytoolError
    ├── CancelledByOperatorError
    └── WorkflowError
        ├── ViewNotOpenedError
        └── ViewReusedError

Example Usage:
    >>> from build_credentials.exceptions import ManifestInvalidError
    >>> try:
    ...     manifest = load_manifest(project_dir)
    ... except FileNotFoundError as e:
    ...     raise ManifestInvalidError(f"app.json not found in {project_dir}") from e
"""


class BuildCredentialsError(Exception):
    """Base exception for all build-credentials errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(BuildCredentialsError):
    """Settings file is missing, unreadable or contains invalid values."""

    pass


class AuthenticationRequiredError(BuildCredentialsError):
    """No authenticated identity is available for this session.

    Fatal: every credential operation is keyed by the account that owns the
    experience, so nothing can proceed without a login.
    """

    def __init__(self, message: str = "This workflow requires you to be logged in.") -> None:
        super().__init__(message)


class ManifestInvalidError(BuildCredentialsError):
    """Project manifest is missing or lacks a required field (e.g. slug)."""

    pass


class CredentialError(BuildCredentialsError):
    """Credential-related errors.

    Attributes:
        message: Human-readable error description
        experience: Experience the credential belongs to (e.g. "@jane/app")
        suggestion: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        experience: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            experience: Experience name the credential belongs to
            suggestion: Optional suggestion for resolution
        """
        self.experience = experience
        self.suggestion = suggestion

        full_message = message
        if experience:
            full_message = f"{message} (experience: {experience})"
        if suggestion:
            full_message = f"{full_message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        # Preserve original message (super sets self.message to full_message)
        self.message = message


class ValidationFailedError(CredentialError):
    """A bundle, answer or local input failed validation.

    Examples:
        - Keystore bundle with one of its four fields empty
        - Invalid Android package name
        - Environment provisioning with only some variables set
    """

    pass


class RemoteOperationError(BuildCredentialsError):
    """Communication with the credential service failed.

    Attributes:
        status_code: HTTP status code (if applicable)
        response_text: Response body text (if applicable)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response_text: Response body text (if applicable)
        """
        self.message = message
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = message


class KeytoolError(RemoteOperationError):
    """The keytool toolchain used for keystore generation or export failed."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str | None = None) -> None:
        self.returncode = returncode
        if returncode is not None:
            message = f"{message} (exit code {returncode})"
        super().__init__(message, response_text=stderr)


class CancelledByOperatorError(BuildCredentialsError):
    """The operator aborted an interactive step.

    Not a failure: the CLI exits cleanly, but no further views run.
    """

    def __init__(self, message: str = "Cancelled by operator") -> None:
        super().__init__(message)


class WorkflowError(BuildCredentialsError):
    """The view state machine was driven incorrectly or ended without a result."""

    pass


class ViewNotOpenedError(WorkflowError):
    """A value populated by ``open`` was read before the view was opened."""

    def __init__(self, attribute: str) -> None:
        self.attribute = attribute
        super().__init__(f"'{attribute}' is not available until the view has been opened by a ViewRunner")


class ViewReusedError(WorkflowError):
    """A single-use view was opened a second time."""

    pass
