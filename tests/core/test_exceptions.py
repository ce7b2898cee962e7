"""
Test suite for the error taxonomy.

System role: Verification of error kinds, statuses and public messages
"""

import pytest

from diagrammaton.core.exceptions import (
    UNEXPECTED_ERROR_MESSAGE,
    ApiKeyNotFoundForUserError,
    ErrorKind,
    GenerationTimeoutError,
    InvalidLicenseKeyError,
    MissingLicenseKeyError,
    NoDescriptionProvidedError,
    ProviderError,
    RateLimitExceededError,
    StreamStalledError,
    UnexpectedError,
    to_error_record,
)


class TestErrorRecords:
    """Conversion into ErrorRecord values."""

    @pytest.mark.parametrize(
        ("error", "kind", "status"),
        [
            (RateLimitExceededError(), ErrorKind.RATE_LIMIT_EXCEEDED, 429),
            (NoDescriptionProvidedError(), ErrorKind.NO_DESCRIPTION_PROVIDED, 400),
            (InvalidLicenseKeyError(), ErrorKind.INVALID_LICENSE_KEY, 401),
            (MissingLicenseKeyError(), ErrorKind.INVALID_LICENSE_KEY, 400),
            (ApiKeyNotFoundForUserError(), ErrorKind.API_KEY_NOT_FOUND_FOR_USER, 400),
            (StreamStalledError(), ErrorKind.PROVIDER_ERROR, 502),
            (GenerationTimeoutError(), ErrorKind.PROVIDER_ERROR, 502),
            (UnexpectedError(), ErrorKind.UNEXPECTED, 500),
        ],
    )
    def test_kind_and_status(self, error, kind: ErrorKind, status: int) -> None:
        record = error.to_record()

        assert record.kind is kind
        assert record.http_status == status

    def test_missing_license_message(self) -> None:
        assert MissingLicenseKeyError().to_record().to_payload() == {
            "type": "error",
            "message": "License key is required",
        }

    def test_details_stay_in_log_context(self) -> None:
        record = ProviderError("OpenAI API error", details={"status_code": 500}).to_record()

        assert record.log_context == {"status_code": 500}
        assert "status_code" not in record.to_payload()

    def test_unknown_exception_becomes_unexpected(self) -> None:
        record = to_error_record(KeyError("secret internals"))

        assert record.kind is ErrorKind.UNEXPECTED
        assert record.message == UNEXPECTED_ERROR_MESSAGE
        assert "secret internals" not in record.message
        assert record.log_context["error_type"] == "KeyError"

    def test_str_includes_details(self) -> None:
        error = InvalidLicenseKeyError(details={"license_id": "x"})

        assert "Details" in str(error)
        assert error.message == "Invalid license key"
