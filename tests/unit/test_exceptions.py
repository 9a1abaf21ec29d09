"""Tests for build_credentials.exceptions module."""

import pytest

from build_credentials.exceptions import (
    AuthenticationRequiredError,
    BuildCredentialsError,
    CancelledByOperatorError,
    ConfigurationError,
    CredentialError,
    KeytoolError,
    ManifestInvalidError,
    RemoteOperationError,
    ValidationFailedError,
    ViewNotOpenedError,
    ViewReusedError,
    WorkflowError,
)


class TestBuildCredentialsError:
    """Test base BuildCredentialsError class."""

    def test_init_with_message(self):
        error = BuildCredentialsError("Test error message")

        assert error.message == "Test error message"
        assert str(error) == "Test error message"

    def test_exception_chain(self):
        original_error = ValueError("Original error")

        with pytest.raises(BuildCredentialsError) as exc_info:
            raise ManifestInvalidError("Wrapped error") from original_error

        assert exc_info.value.__cause__ is original_error

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            AuthenticationRequiredError,
            ManifestInvalidError,
            CredentialError,
            RemoteOperationError,
            CancelledByOperatorError,
            WorkflowError,
        ],
    )
    def test_hierarchy(self, error_class):
        """Every error can be caught as BuildCredentialsError."""
        assert issubclass(error_class, BuildCredentialsError)


class TestCredentialError:
    """Test CredentialError and its subclasses."""

    def test_message_only(self):
        error = CredentialError("Keystore missing")

        assert error.message == "Keystore missing"
        assert error.experience is None
        assert error.suggestion is None
        assert str(error) == "Keystore missing"

    def test_full_message_includes_experience_and_suggestion(self):
        error = ValidationFailedError(
            "No keystore stored", experience="@jane/app", suggestion="Run 'buildcreds prepare'"
        )

        assert error.message == "No keystore stored"
        assert str(error) == "No keystore stored (experience: @jane/app)\nSuggestion: Run 'buildcreds prepare'"

    def test_validation_failed_is_credential_error(self):
        assert isinstance(ValidationFailedError("bad"), CredentialError)


class TestRemoteOperationError:
    """Test RemoteOperationError and KeytoolError."""

    def test_status_code_in_string(self):
        error = RemoteOperationError("Credential service could not delete credentials", 500, "oops")

        assert error.message == "Credential service could not delete credentials"
        assert error.status_code == 500
        assert error.response_text == "oops"
        assert str(error) == "Credential service could not delete credentials (HTTP 500)"

    def test_without_status_code(self):
        error = RemoteOperationError("connection refused")

        assert error.status_code is None
        assert str(error) == "connection refused"

    def test_keytool_error(self):
        error = KeytoolError("keytool failed", returncode=2, stderr="bad password")

        assert isinstance(error, RemoteOperationError)
        assert error.returncode == 2
        assert error.response_text == "bad password"
        assert error.message == "keytool failed (exit code 2)"


class TestDefaultMessages:
    def test_authentication_required(self):
        assert AuthenticationRequiredError().message == "This workflow requires you to be logged in."

    def test_cancelled(self):
        assert CancelledByOperatorError().message == "Cancelled by operator"
        assert CancelledByOperatorError("Keystore generation was declined").message == (
            "Keystore generation was declined"
        )


class TestWorkflowErrors:
    def test_view_not_opened(self):
        error = ViewNotOpenedError("keystore")

        assert isinstance(error, WorkflowError)
        assert error.attribute == "keystore"
        assert "'keystore'" in error.message

    def test_view_reused(self):
        assert issubclass(ViewReusedError, WorkflowError)
