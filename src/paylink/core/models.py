"""Core Data Models for PayLink.

Dataclasses for the consumer-session and financial-connections APIs. Each
model built from a server payload exposes ``from_dict``; unknown keys are
ignored so that new server fields never break decoding.

Models:
    ConsumerSession: Authenticated consumer session and its verifications.
    SessionLookupResponse: Result of a session lookup (found / not found).
    SignUpResponse: Session and publishable key created by sign up.
    PaymentDetails: A saved payment method of the consumer.
    PaymentMethodParams: Params for confirming a payment with Link.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from paylink.core.exceptions import ResponseError


def required_field(data: Any, key: str) -> Any:
    """Return ``data[key]`` or raise ResponseError when the body lacks it."""
    if not isinstance(data, Mapping):
        raise ResponseError(reason=f"expected an object holding '{key}'")
    try:
        return data[key]
    except KeyError as e:
        raise ResponseError(reason=f"missing field '{key}'") from e


class SessionState(str, Enum):
    """Authentication state of a consumer account."""

    REQUIRES_SIGN_UP = "requires_sign_up"
    REQUIRES_VERIFICATION = "requires_verification"
    VERIFIED = "verified"


class ConsentAction(str, Enum):
    """How the consumer consented to sign up."""

    CHECKBOX = "clicked_checkbox_mobile"
    BUTTON = "clicked_button_mobile"


class DetailsType(str, Enum):
    """Kind of saved payment details."""

    CARD = "card"
    BANK_ACCOUNT = "bank_account"
    UNPARSABLE = "unparsable"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DetailsType":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.UNPARSABLE


class FundingSource(str, Enum):
    """Funding sources a merchant enables for Link."""

    CARD = "card"
    BANK_ACCOUNT = "bank_account"

    @property
    def details_type(self) -> DetailsType:
        return DetailsType(self.value)


class PaymentMethodType(str, Enum):
    """Payment method types a Link account can pay with."""

    CARD = "card"
    LINK_INSTANT_DEBIT = "link_instant_debit"


@dataclass(frozen=True)
class VerificationSession:
    """A verification attempt attached to a consumer session.

    Attributes:
        type: "sms" or "signup".
        state: "started", "verified", "failed", ...
    """

    type: str
    state: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VerificationSession:
        return cls(
            type=str(data.get("type", "")).lower(),
            state=str(data.get("state", "")).lower(),
        )


@dataclass(frozen=True)
class ConsumerSession:
    """Consumer session returned by lookup and sign up.

    Attributes:
        client_secret: Secret that authenticates the session.
        email_address: Email of the consumer.
        redacted_phone_number: Phone number with most digits hidden.
        verification_sessions: Verification attempts on this session.
        support_payment_details_types: Details types the consumer can use.
    """

    client_secret: str
    email_address: str
    redacted_phone_number: Optional[str] = None
    verification_sessions: tuple = ()
    support_payment_details_types: frozenset = frozenset()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConsumerSession:
        return cls(
            client_secret=required_field(data, "client_secret"),
            email_address=data.get("email_address", ""),
            redacted_phone_number=data.get("redacted_phone_number"),
            verification_sessions=tuple(
                VerificationSession.from_dict(v)
                for v in data.get("verification_sessions", [])
            ),
            support_payment_details_types=frozenset(
                DetailsType.parse(t)
                for t in data.get("support_payment_details_types", [])
            ),
        )

    def _has(self, type_: str, state: str) -> bool:
        return any(
            v.type == type_ and v.state == state for v in self.verification_sessions
        )

    @property
    def has_verified_sms_session(self) -> bool:
        return self._has("sms", "verified")

    @property
    def has_started_sms_verification(self) -> bool:
        return self._has("sms", "started")

    @property
    def is_verified_for_signup(self) -> bool:
        return self._has("signup", "started")


@dataclass(frozen=True)
class SessionLookupResponse:
    """Result of ``POST /v1/consumers/sessions/lookup``.

    Exactly one of the three outcomes is represented:
    ``found`` (session + publishable_key), ``not_found`` (error_message), or
    ``no_available_lookup_params`` (no email and no session cookie).
    """

    exists: bool
    session: Optional[ConsumerSession] = None
    publishable_key: Optional[str] = None
    error_message: Optional[str] = None
    no_available_lookup_params: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SessionLookupResponse:
        if data.get("exists"):
            return cls(
                exists=True,
                session=ConsumerSession.from_dict(required_field(data, "consumer_session")),
                publishable_key=data.get("publishable_key"),
            )
        return cls(exists=False, error_message=data.get("error_message"))

    @classmethod
    def no_params(cls) -> SessionLookupResponse:
        return cls(exists=False, no_available_lookup_params=True)


@dataclass(frozen=True)
class SignUpResponse:
    """Result of ``POST /v1/consumers/accounts/sign_up``."""

    session: ConsumerSession
    publishable_key: Optional[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SignUpResponse:
        return cls(
            session=ConsumerSession.from_dict(required_field(data, "consumer_session")),
            publishable_key=data.get("publishable_key"),
        )


@dataclass(frozen=True)
class PaymentDetails:
    """A saved payment method of the consumer.

    Attributes:
        id: Payment details identifier.
        type: Card, bank account, or unparsable.
        is_default: Whether this is the consumer's default method.
        last4: Last four digits of the card or account.
        brand: Card brand, when type is card.
        cvc: CVC collected for this payment, never sent back by the server.
    """

    id: str
    type: DetailsType
    is_default: bool = False
    last4: Optional[str] = None
    brand: Optional[str] = None
    cvc: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PaymentDetails:
        details_id = required_field(data, "id")
        details_type = DetailsType.parse(data.get("type"))
        nested = data.get(details_type.value) or {}
        return cls(
            id=details_id,
            type=details_type,
            is_default=bool(data.get("is_default", False)),
            last4=nested.get("last4"),
            brand=nested.get("brand"),
        )


@dataclass(frozen=True)
class CardExpiryDate:
    month: int
    year: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError("month must be between 1 and 12")


@dataclass(frozen=True)
class UpdatePaymentDetailsParams:
    """Fields that can be changed on saved payment details.

    Only card details can be updated; bank accounts support ``is_default``.
    """

    is_default: Optional[bool] = None
    expiry_date: Optional[CardExpiryDate] = None
    billing_details: Optional[Dict[str, Any]] = None

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.is_default is not None:
            params["is_default"] = self.is_default
        if self.expiry_date is not None:
            params["exp_month"] = self.expiry_date.month
            params["exp_year"] = self.expiry_date.year
        if self.billing_details:
            params["billing_address"] = self.billing_details
        return params


@dataclass(frozen=True)
class LinkAccountSession:
    """Financial connections session created for a consumer."""

    id: str
    client_secret: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LinkAccountSession:
        return cls(
            id=required_field(data, "id"),
            client_secret=required_field(data, "client_secret"),
        )


@dataclass(frozen=True)
class PaymentDetailsShareResponse:
    payment_method: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PaymentDetailsShareResponse:
        return cls(payment_method=required_field(data, "payment_method"))


@dataclass
class PaymentMethodParams:
    """Params for confirming an intent with a Link payment method."""

    payment_details_id: str
    credentials: Dict[str, str]
    extra: Dict[str, Any] = field(default_factory=dict)
    type: str = "link"

    def to_params(self) -> Dict[str, Any]:
        link: Dict[str, Any] = {
            "payment_details_id": self.payment_details_id,
            "credentials": dict(self.credentials),
        }
        link.update(self.extra)
        return {"type": self.type, "link": link}


@dataclass(frozen=True)
class AuthSessionOAuthResults:
    """OAuth results of a financial connections auth session."""

    id: str
    status: str
    public_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AuthSessionOAuthResults:
        return cls(
            id=required_field(data, "id"),
            status=data.get("status", ""),
            public_token=data.get("public_token"),
        )


@dataclass(frozen=True)
class LinkedAccount:
    id: str
    institution_name: str
    last4: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LinkedAccount:
        return cls(
            id=required_field(data, "id"),
            institution_name=data.get("institution_name", ""),
            last4=data.get("last4"),
        )


@dataclass(frozen=True)
class LinkedAccountList:
    data: List[LinkedAccount]
    has_more: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LinkedAccountList:
        return cls(
            data=[LinkedAccount.from_dict(a) for a in data.get("data", [])],
            has_more=bool(data.get("has_more", False)),
        )


