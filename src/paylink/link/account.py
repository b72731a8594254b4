"""Consumer (Link) account.

``LinkAccount`` owns the consumer session and the consumer account
publishable key. Every authenticated operation goes through
AuthRetryingClient, whose refresh step is :meth:`LinkAccount.refresh_session`:
a bare session lookup that replaces the session and key in place. Calls read
the session and key when they run, so a replay after a refresh uses the new
credentials.

Usage:
    from paylink.link import LinkAccount

    account = LinkAccount(email="jane@example.com", session=None,
                          publishable_key=None, api=consumer_api)
    await account.sign_up("+15555550123", "Jane Doe", "US", ConsentAction.CHECKBOX)
    details = await account.list_payment_details()
"""

from __future__ import annotations

import hashlib
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Set, TypeVar

import structlog

from paylink.api.consumer_session import ConsumerSessionAPI
from paylink.core.exceptions import (
    LinkLookupNotFoundError,
    LinkSignUpNotRequiredError,
    MissingClientSecretError,
    NoValidSessionError,
)
from paylink.core.models import (
    ConsentAction,
    ConsumerSession,
    DetailsType,
    FundingSource,
    LinkAccountSession,
    PaymentDetails,
    PaymentDetailsShareResponse,
    PaymentMethodParams,
    PaymentMethodType,
    SessionState,
    UpdatePaymentDetailsParams,
)
from paylink.link.auth_retry import AuthRetryingClient
from paylink.protocols.cookie_store import CookieKey

log = structlog.get_logger()

T = TypeVar("T")

# Testmode emails containing this marker can use every funding source
MULTIPLE_FUNDING_SOURCES_MARKER = "+multiple_funding_sources@"


class LinkAccount:
    """A consumer account and its current session.

    Attributes:
        email: Email address of the consumer.
    """

    def __init__(
        self,
        email: str,
        session: Optional[ConsumerSession],
        publishable_key: Optional[str],
        api: ConsumerSessionAPI,
    ) -> None:
        self.email = email
        self._session = session
        self._publishable_key = publishable_key
        self._api = api
        self._auth_retry = AuthRetryingClient(self.refresh_session)

    # Session state

    @property
    def current_session(self) -> Optional[ConsumerSession]:
        return self._session

    @property
    def publishable_key(self) -> Optional[str]:
        """Publishable key of the consumer account."""
        return self._publishable_key

    @property
    def redacted_phone_number(self) -> Optional[str]:
        return self._session.redacted_phone_number if self._session else None

    @property
    def is_registered(self) -> bool:
        return self._session is not None

    @property
    def is_logged_in(self) -> bool:
        return self.session_state is SessionState.VERIFIED

    @property
    def session_state(self) -> SessionState:
        if self._session is None:
            return SessionState.REQUIRES_SIGN_UP
        # SMS verification is not required in the signup flow
        if self._session.has_verified_sms_session or self._session.is_verified_for_signup:
            return SessionState.VERIFIED
        return SessionState.REQUIRES_VERIFICATION

    @property
    def has_started_sms_verification(self) -> bool:
        return self._session.has_started_sms_verification if self._session else False

    # Sign up

    async def sign_up(
        self,
        phone_number: str,
        legal_name: Optional[str],
        country_code: Optional[str],
        consent_action: ConsentAction,
    ) -> None:
        """Create the consumer account and adopt its session.

        Raises:
            LinkSignUpNotRequiredError: The account already has a session.
        """
        state = self.session_state
        if state is not SessionState.REQUIRES_SIGN_UP:
            log.warning("link_invalid_session_state", session_state=state.value)
            raise LinkSignUpNotRequiredError(session_state=state.value)

        response = await self._api.sign_up(
            email=self.email,
            phone_number=phone_number,
            legal_name=legal_name,
            country_code=country_code,
            consent_action=consent_action,
        )
        self._session = response.session
        self._publishable_key = response.publishable_key

    # Authenticated operations

    async def create_link_account_session(self) -> LinkAccountSession:
        self._require_session("linking")
        return await self._retrying_on_auth_error(
            lambda: self._api.create_link_account_session(
                self._session,
                consumer_publishable_key=self._publishable_key,
            )
        )

    async def create_payment_details(
        self,
        card: Mapping[str, Any],
        billing_details: Optional[Mapping[str, Any]] = None,
    ) -> PaymentDetails:
        self._require_session("saving")
        return await self._retrying_on_auth_error(
            lambda: self._api.create_payment_details(
                self._session,
                card,
                billing_details=billing_details,
                consumer_publishable_key=self._publishable_key,
            )
        )

    async def create_payment_details_from_linked_account(
        self, linked_account_id: str
    ) -> PaymentDetails:
        self._require_session("saving")
        return await self._retrying_on_auth_error(
            lambda: self._api.create_payment_details_from_linked_account(
                self._session,
                linked_account_id,
                consumer_publishable_key=self._publishable_key,
            )
        )

    async def list_payment_details(self) -> List[PaymentDetails]:
        self._require_session("paying")
        return await self._retrying_on_auth_error(
            lambda: self._api.list_payment_details(
                self._session,
                consumer_publishable_key=self._publishable_key,
            )
        )

    async def share_payment_details(self, payment_details_id: str) -> PaymentDetailsShareResponse:
        self._require_session("saving")
        return await self._retrying_on_auth_error(
            lambda: self._api.share_payment_details(
                self._session,
                payment_details_id,
                consumer_publishable_key=self._publishable_key,
            )
        )

    async def delete_payment_details(self, payment_details_id: str) -> None:
        self._require_session("deleting")
        await self._retrying_on_auth_error(
            lambda: self._api.delete_payment_details(
                self._session,
                payment_details_id,
                consumer_publishable_key=self._publishable_key,
            )
        )

    async def update_payment_details(
        self,
        payment_details_id: str,
        update_params: UpdatePaymentDetailsParams,
    ) -> PaymentDetails:
        self._require_session("updating")
        return await self._retrying_on_auth_error(
            lambda: self._api.update_payment_details(
                self._session,
                payment_details_id,
                update_params,
                consumer_publishable_key=self._publishable_key,
            )
        )

    # Session refresh

    async def refresh_session(self) -> None:
        """Re-establish the session with a lookup that supplies no email.

        The lookup endpoint doubles as the refresh endpoint: called without
        an email it resolves the session from the session cookie.

        Raises:
            LinkLookupNotFoundError: No account matches the cookie.
            MissingClientSecretError: There is no cookie to look up with.
        """
        response = await self._api.lookup_session(email=None)

        if response.no_available_lookup_params:
            raise MissingClientSecretError()
        if not response.exists or response.session is None:
            raise LinkLookupNotFoundError(server_message=response.error_message)

        self._session = response.session
        self._publishable_key = response.publishable_key
        log.info("link_session_refreshed")

    # Logout

    async def logout(self) -> None:
        """Log out on the server, forget the session and clear its cookie.

        The server call is best effort: its failure is logged and the local
        session is forgotten regardless.
        """
        session = self._session
        if session is None:
            log.warning("link_logout_without_session")
            return

        try:
            await self._api.log_out(session, consumer_publishable_key=self._publishable_key)
        except Exception as e:
            log.warning("link_logout_failed", error_class=type(e).__name__, error=str(e))

        self._api.cookie_store.delete(CookieKey.SESSION)
        self.mark_email_as_logged_out()
        self._session = None

    def mark_email_as_logged_out(self) -> None:
        hashed_email = hashlib.sha256(self.email.lower().encode("utf-8")).hexdigest()
        self._api.cookie_store.write(CookieKey.LAST_LOGOUT_EMAIL, hashed_email)

    # Payment method params

    def make_payment_method_params(self, payment_details: PaymentDetails) -> Optional[PaymentMethodParams]:
        """Build params for paying with ``payment_details``.

        Returns None when there is no active session.
        """
        if self._session is None:
            log.warning("link_payment_params_without_session")
            return None

        extra = {}
        if payment_details.cvc:
            extra["card"] = {"cvc": payment_details.cvc}

        return PaymentMethodParams(
            payment_details_id=payment_details.id,
            credentials={"consumer_session_client_secret": self._session.client_secret},
            extra=extra,
        )

    # Payment method availability

    def supported_payment_details_types(
        self,
        funding_sources: Optional[Iterable[FundingSource]],
        testmode: Optional[bool] = None,
    ) -> Set[DetailsType]:
        """Details types usable for an intent with the given funding sources.

        The intersection of the merchant's funding sources and the types the
        consumer session supports.
        """
        if self._session is None or funding_sources is None:
            return set()

        funding_types = {source.details_type for source in funding_sources}
        supported = funding_types & set(self._session.support_payment_details_types)

        if testmode is None:
            testmode = self._api.client.is_testmode
        if testmode and MULTIPLE_FUNDING_SOURCES_MARKER in self.email:
            supported.add(DetailsType.BANK_ACCOUNT)

        return supported

    def supported_payment_method_types(
        self,
        funding_sources: Optional[Iterable[FundingSource]],
        testmode: Optional[bool] = None,
    ) -> List[PaymentMethodType]:
        """Payment method types for an intent; card when nothing else is."""
        types: List[PaymentMethodType] = []
        details_types = self.supported_payment_details_types(funding_sources, testmode)

        if DetailsType.CARD in details_types:
            types.append(PaymentMethodType.CARD)
        if DetailsType.BANK_ACCOUNT in details_types:
            types.append(PaymentMethodType.LINK_INSTANT_DEBIT)

        if not types:
            types.append(PaymentMethodType.CARD)
        return types

    # Helpers

    def _require_session(self, action: str) -> None:
        if self._session is None:
            raise NoValidSessionError(action=action)

    async def _retrying_on_auth_error(self, call: Callable[[], Awaitable[T]]) -> T:
        return await self._auth_retry.execute(call)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinkAccount):
            return NotImplemented
        return (
            self.email == other.email
            and self._session == other._session
            and self._publishable_key == other._publishable_key
        )

    def __repr__(self) -> str:
        return (
            f"LinkAccount(email={self.email!r}, "
            f"session_state={self.session_state.value!r})"
        )
