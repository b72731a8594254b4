"""Unit tests for the PayLink exception hierarchy and error classification."""

import pytest

from paylink.core.exceptions import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    ConfigurationError,
    ErrorKind,
    LinkAccountError,
    LinkLookupNotFoundError,
    LinkSignUpNotRequiredError,
    MissingClientSecretError,
    NoValidSessionError,
    PayLinkError,
    ResponseError,
    RetriesExhausted,
    classify_error,
)


class TestHierarchy:
    """All library errors share the PayLinkError base."""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("/tmp/config.yaml"),
            APIError(500),
            AuthenticationError(),
            APIConnectionError("https://api.test.local/v1"),
            ResponseError("bad body"),
            RetriesExhausted(3, APIError(202, code="202")),
            LinkSignUpNotRequiredError("verified"),
            NoValidSessionError("paying"),
            LinkLookupNotFoundError(),
            MissingClientSecretError(),
        ],
    )
    def test_inherits_from_base(self, error):
        assert isinstance(error, PayLinkError)

    def test_authentication_error_is_api_error(self):
        error = AuthenticationError()
        assert isinstance(error, APIError)
        assert error.status_code == 401
        assert error.code == "authentication_error"

    def test_link_errors_share_base(self):
        assert issubclass(NoValidSessionError, LinkAccountError)
        assert issubclass(LinkLookupNotFoundError, LinkAccountError)


class TestMessagesAndContext:
    def test_base_default_message(self):
        assert str(PayLinkError()) == "A PayLink error occurred."
        assert PayLinkError().context == {}

    def test_configuration_error_message_includes_key(self):
        error = ConfigurationError("/etc/paylink.yaml", key="api.timeout")
        assert "api.timeout" in str(error)
        assert error.context == {"config_path": "/etc/paylink.yaml", "key": "api.timeout"}

    def test_api_error_code_defaults_to_status(self):
        error = APIError(503, request_id="req_1")
        assert error.code == "503"
        assert error.context == {"status_code": 503, "code": "503", "request_id": "req_1"}
        assert "503" in str(error)

    def test_retries_exhausted_keeps_last_error(self):
        last = APIError(202, code="202")
        error = RetriesExhausted(attempts=4, last_error=last)
        assert error.attempts == 4
        assert error.last_error is last
        assert "4 attempts" in str(error)
        assert "RetriesExhausted(attempts=4" in repr(error)

    def test_lookup_not_found_uses_server_message(self):
        error = LinkLookupNotFoundError(server_message="No such consumer")
        assert str(error) == "No such consumer"
        assert error.context == {"server_message": "No such consumer"}

    def test_no_valid_session_names_action(self):
        error = NoValidSessionError(action="saving")
        assert "saving" in str(error)
        assert error.context == {"action": "saving"}


class TestClassifyError:
    """classify_error maps failures onto the three retry behaviours."""

    def test_processing_code_is_retryable(self):
        error = APIError(202, code="202")
        assert error.is_processing
        assert classify_error(error) is ErrorKind.RETRYABLE_PROCESSING

    def test_processing_code_on_other_status_is_retryable(self):
        assert classify_error(APIError(400, code="202")) is ErrorKind.RETRYABLE_PROCESSING

    def test_authentication_error_is_auth_expired(self):
        assert classify_error(AuthenticationError()) is ErrorKind.AUTHENTICATION_EXPIRED

    def test_authentication_error_with_processing_code_is_auth(self):
        error = AuthenticationError(code="202")
        assert classify_error(error) is ErrorKind.AUTHENTICATION_EXPIRED

    @pytest.mark.parametrize(
        "error",
        [
            APIError(500),
            APIError(400, code="resource_missing"),
            APIConnectionError("https://api.test.local"),
            ResponseError("not json"),
            ValueError("boom"),
        ],
    )
    def test_everything_else_is_terminal(self, error):
        assert classify_error(error) is ErrorKind.TERMINAL


def test_authentication_error_keeps_reported_status():
    error = AuthenticationError(message="bad key", status_code=403)
    assert error.status_code == 403
    assert classify_error(error) is ErrorKind.AUTHENTICATION_EXPIRED
