"""PayLink Exception Hierarchy.

This module defines the structured exception hierarchy for PayLink.
All custom exceptions inherit from PayLinkError, enabling consistent
error handling across the codebase.

Error classes the retry machinery inspects:
- APIError with code "202" → retryable processing signal (polling)
- AuthenticationError → one session refresh and replay
- Everything else → terminal, surfaced verbatim

Usage:
    from paylink.core.exceptions import APIError, classify_error, ErrorKind

    try:
        await client.post("/v1/consumers/payment_details/list", data=params)
    except APIError as e:
        if classify_error(e) is ErrorKind.RETRYABLE_PROCESSING:
            ...
"""

from enum import Enum
from typing import Any, Optional


# Code the server uses to signal "still processing, try again later"
PROCESSING_CODE = "202"


class PayLinkError(Exception):
    """Base exception for all PayLink errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        """Initialize PayLinkError.

        Args:
            message: Optional custom message. Defaults to a generic message.
        """
        self.message = message or "A PayLink error occurred."
        super().__init__(self.message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context dictionary for structured logging.

        Returns:
            dict: Key-value pairs of exception context.
        """
        return {}

    def __repr__(self) -> str:
        """Return debug representation."""
        return f"{self.__class__.__name__}({self.message!r})"


class ConfigurationError(PayLinkError):
    """Configuration file or value is invalid.

    Attributes:
        config_path: Path to the configuration file.
        key: The configuration key that caused the error.
    """

    def __init__(
        self,
        config_path: str,
        key: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        self.config_path = config_path
        self.key = key

        if message is None:
            key_info = f" (key: {key})" if key else ""
            message = f"Invalid configuration in '{config_path}'{key_info}."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for configuration error."""
        return {"config_path": self.config_path, "key": self.key}

    def __repr__(self) -> str:
        """Return debug representation with attributes."""
        return (
            f"ConfigurationError(config_path={self.config_path!r}, "
            f"key={self.key!r})"
        )


# === API Exceptions ===


class APIError(PayLinkError):
    """The API answered with a non-success status.

    Attributes:
        status_code: HTTP status of the response.
        code: Error code reported by the server (or the status as a string).
        request_id: Optional server request identifier.
    """

    def __init__(
        self,
        status_code: int,
        code: Optional[str] = None,
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> None:
        """Initialize APIError.

        Args:
            status_code: HTTP status of the response.
            code: Error code from the response body. Defaults to the status.
            message: Optional server-provided message.
            request_id: Optional server request identifier.
        """
        self.status_code = status_code
        self.code = code if code is not None else str(status_code)
        self.request_id = request_id

        if message is None:
            message = f"API request failed with status {status_code} (code: {self.code})."

        super().__init__(message)

    @property
    def is_processing(self) -> bool:
        """True when the server reports the result is not ready yet."""
        return self.code == PROCESSING_CODE

    @property
    def context(self) -> dict[str, Any]:
        """Return context for API error."""
        return {
            "status_code": self.status_code,
            "code": self.code,
            "request_id": self.request_id,
        }

    def __repr__(self) -> str:
        """Return debug representation with attributes."""
        return (
            f"{self.__class__.__name__}(status_code={self.status_code!r}, "
            f"code={self.code!r})"
        )


class AuthenticationError(APIError):
    """The consumer session or key was rejected (expired or invalid).

    Triggers exactly one session refresh and replay in AuthRetryingClient.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = "authentication_error",
        request_id: Optional[str] = None,
        status_code: int = 401,
    ) -> None:
        if message is None:
            message = "Authentication failed: the session has expired or is invalid."
        super().__init__(status_code, code=code, message=message, request_id=request_id)


class APIConnectionError(PayLinkError):
    """The API could not be reached (network failure or timeout).

    Attributes:
        url: The URL that was requested.
    """

    def __init__(self, url: str, message: Optional[str] = None) -> None:
        self.url = url

        if message is None:
            message = f"Could not connect to '{url}'."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for connection error."""
        return {"url": self.url}


class ResponseError(PayLinkError):
    """The API response could not be parsed.

    Attributes:
        reason: Description of the format issue.
    """

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        self.reason = reason

        if message is None:
            message = f"Invalid API response: {reason}."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for response error."""
        return {"reason": self.reason}


class RetriesExhausted(PayLinkError):
    """A poll kept seeing the processing signal past its retry budget.

    Attributes:
        attempts: Number of times the operation was invoked.
        last_error: The last processing error observed.
    """

    def __init__(
        self,
        attempts: int,
        last_error: BaseException,
        message: Optional[str] = None,
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error

        if message is None:
            message = f"Gave up after {attempts} attempts: {last_error}"

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for exhausted retries."""
        return {
            "attempts": self.attempts,
            "last_error": repr(self.last_error),
        }

    def __repr__(self) -> str:
        """Return debug representation with attributes."""
        return (
            f"RetriesExhausted(attempts={self.attempts!r}, "
            f"last_error={self.last_error!r})"
        )


# === Link Account Exceptions ===


class LinkAccountError(PayLinkError):
    """Base exception for consumer account state errors."""


class LinkSignUpNotRequiredError(LinkAccountError):
    """Sign up was requested for an account that already has a session.

    Attributes:
        session_state: The account's state at the time of the request.
    """

    def __init__(self, session_state: str, message: Optional[str] = None) -> None:
        self.session_state = session_state

        if message is None:
            message = f"Sign up is not required in session state '{session_state}'."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        return {"session_state": self.session_state}


class NoValidSessionError(LinkAccountError):
    """An operation that needs a consumer session was called without one.

    Attributes:
        action: The attempted operation (e.g. "saving", "paying").
    """

    def __init__(self, action: str, message: Optional[str] = None) -> None:
        self.action = action

        if message is None:
            message = f"Cannot perform '{action}' without a valid consumer session."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        return {"action": self.action}


class LinkLookupNotFoundError(LinkAccountError):
    """The session lookup found no consumer account.

    Attributes:
        server_message: The message returned by the server, if any.
    """

    def __init__(self, server_message: Optional[str] = None) -> None:
        self.server_message = server_message
        super().__init__(server_message or "No consumer account was found.")

    @property
    def context(self) -> dict[str, Any]:
        return {"server_message": self.server_message}


class MissingClientSecretError(LinkAccountError):
    """No email or session cookie was available to look up a session."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "No lookup parameters are available to refresh the session.")


# === Error classification ===


class ErrorKind(Enum):
    """How the retry machinery treats a failure."""

    RETRYABLE_PROCESSING = "retryable_processing"
    AUTHENTICATION_EXPIRED = "authentication_expired"
    TERMINAL = "terminal"


def classify_error(error: BaseException) -> ErrorKind:
    """Classify a failure for the polling and auth-retry helpers.

    Args:
        error: The exception raised by an API call.

    Returns:
        The ErrorKind for the exception. Unknown exceptions are terminal.
    """
    if isinstance(error, AuthenticationError):
        return ErrorKind.AUTHENTICATION_EXPIRED
    if isinstance(error, APIError) and error.is_processing:
        return ErrorKind.RETRYABLE_PROCESSING
    return ErrorKind.TERMINAL
