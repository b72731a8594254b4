"""Core module for PayLink.

Exports the core components: exceptions, data models, and configuration.
"""

from paylink.core.exceptions import (
    PayLinkError,
    ConfigurationError,
    # API Exceptions
    APIError,
    AuthenticationError,
    APIConnectionError,
    ResponseError,
    RetriesExhausted,
    # Account Exceptions
    LinkAccountError,
    LinkSignUpNotRequiredError,
    NoValidSessionError,
    LinkLookupNotFoundError,
    MissingClientSecretError,
    ErrorKind,
    classify_error,
)
from paylink.core.models import (
    ConsumerSession,
    SessionState,
    ConsentAction,
    DetailsType,
    FundingSource,
    PaymentMethodType,
    PaymentDetails,
    PaymentMethodParams,
    SessionLookupResponse,
    SignUpResponse,
    UpdatePaymentDetailsParams,
)
from paylink.core.config import (
    get_settings,
    reset_settings,
    Settings,
    APIConfig,
    PollingConfig,
    LoggingConfig,
)

__all__ = [
    # Exceptions
    "PayLinkError",
    "ConfigurationError",
    "APIError",
    "AuthenticationError",
    "APIConnectionError",
    "ResponseError",
    "RetriesExhausted",
    "LinkAccountError",
    "LinkSignUpNotRequiredError",
    "NoValidSessionError",
    "LinkLookupNotFoundError",
    "MissingClientSecretError",
    "ErrorKind",
    "classify_error",
    # Data Models
    "ConsumerSession",
    "SessionState",
    "ConsentAction",
    "DetailsType",
    "FundingSource",
    "PaymentMethodType",
    "PaymentDetails",
    "PaymentMethodParams",
    "SessionLookupResponse",
    "SignUpResponse",
    "UpdatePaymentDetailsParams",
    # Configuration
    "get_settings",
    "reset_settings",
    "Settings",
    "APIConfig",
    "PollingConfig",
    "LoggingConfig",
]
