"""Tests for the failure taxonomy."""

import pytest
from pydantic import ValidationError

from remote_client.models.request import ResponseEnvelope
from remote_client.result import DEFAULT_MESSAGES, Failure, FailureKind


class TestFailureKind:
    """Tests for FailureKind coverage."""

    def test_every_kind_has_a_default_message(self) -> None:
        """Test that the default-message table covers every kind."""
        assert set(DEFAULT_MESSAGES) == set(FailureKind)
        assert all(DEFAULT_MESSAGES[kind] for kind in FailureKind)

    @pytest.mark.parametrize("kind", list(FailureKind))
    def test_error_message_falls_back_to_default(self, kind: FailureKind) -> None:
        """Test that every kind produces a message without an explicit one."""
        failure = Failure(kind=kind)

        assert failure.error_message == DEFAULT_MESSAGES[kind]
        assert str(failure) == f"{kind.value}: {DEFAULT_MESSAGES[kind]}"


class TestFailure:
    """Tests for the Failure model."""

    def test_explicit_message_wins(self) -> None:
        """Test that an explicit message replaces the default."""
        failure = Failure(kind=FailureKind.NOT_FOUND, message="no such user")

        assert failure.error_message == "no such user"

    def test_status_code_from_response(self) -> None:
        """Test that status_code reads the raw response."""
        failure = Failure(
            kind=FailureKind.BAD_REQUEST,
            response=ResponseEnvelope(status_code=422),
        )

        assert failure.status_code == 422
        assert Failure(kind=FailureKind.CANCELLED).status_code is None

    def test_is_immutable(self) -> None:
        """Test that failures cannot be mutated."""
        failure = Failure(kind=FailureKind.UNEXPECTED)

        with pytest.raises(ValidationError):
            failure.message = "changed"  # type: ignore[misc]

    def test_rejects_unknown_fields(self) -> None:
        """Test that extra fields are rejected."""
        with pytest.raises(ValidationError):
            Failure(kind=FailureKind.UNEXPECTED, detail="x")  # type: ignore[call-arg]
