"""Consumer session API bindings.

Each call authenticates with the consumer session client secret (sent as
``credentials``) and, when known, the consumer account publishable key.
Lookup and sign up also maintain the session cookie, which lets a later
lookup without an email refresh the session.
"""

from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional

import structlog

from paylink.api.client import APIClient
from paylink.api.cookie_store import InMemoryCookieStore
from paylink.core.models import (
    ConsentAction,
    ConsumerSession,
    LinkAccountSession,
    PaymentDetails,
    PaymentDetailsShareResponse,
    SessionLookupResponse,
    SignUpResponse,
    UpdatePaymentDetailsParams,
    required_field,
)
from paylink.protocols.cookie_store import CookieKey, CookieStoreProtocol

log = structlog.get_logger()


class ConsumerSessionAPI:
    """Endpoints under ``/v1/consumers``."""

    def __init__(
        self,
        client: APIClient,
        cookie_store: Optional[CookieStoreProtocol] = None,
    ) -> None:
        self._client = client
        self._cookie_store = cookie_store if cookie_store is not None else InMemoryCookieStore()

    @property
    def client(self) -> APIClient:
        return self._client

    @property
    def cookie_store(self) -> CookieStoreProtocol:
        return self._cookie_store

    # Session lifecycle

    async def lookup_session(self, email: Optional[str] = None) -> SessionLookupResponse:
        """Look up the consumer session by email or by session cookie.

        Without an email the stored session cookie is used; if there is no
        cookie either, no request is made and the response reports
        ``no_available_lookup_params``.
        """
        params: Dict[str, Any] = {}
        cookie = self._cookie_store.read(CookieKey.SESSION)

        if email:
            params["email_address"] = email.lower()
        elif not cookie:
            log.debug("session_lookup_skipped", reason="no_lookup_params")
            return SessionLookupResponse.no_params()

        if cookie:
            params["cookies"] = {"verification_session_client_secrets": [cookie]}

        data = await self._client.post("/v1/consumers/sessions/lookup", data=params)
        response = SessionLookupResponse.from_dict(data)
        if response.exists and response.session is not None:
            self._remember(response.session)

        log.info("session_lookup", found=response.exists, by_email=bool(email))
        return response

    async def sign_up(
        self,
        email: str,
        phone_number: str,
        legal_name: Optional[str],
        country_code: Optional[str],
        consent_action: ConsentAction,
    ) -> SignUpResponse:
        """Create a consumer account and return its first session."""
        params = {
            "email_address": email.lower(),
            "phone_number": phone_number,
            "legal_name": legal_name,
            "country": country_code,
            "consent_action": consent_action.value,
        }
        cookie = self._cookie_store.read(CookieKey.SESSION)
        if cookie:
            params["cookies"] = {"verification_session_client_secrets": [cookie]}

        data = await self._client.post("/v1/consumers/accounts/sign_up", data=params)
        response = SignUpResponse.from_dict(data)
        self._remember(response.session)
        log.info("consumer_signed_up", consent_action=consent_action.value)
        return response

    async def log_out(
        self,
        session: ConsumerSession,
        consumer_publishable_key: Optional[str] = None,
    ) -> ConsumerSession:
        data = await self._client.post(
            "/v1/consumers/sessions/log_out",
            data={"credentials": self._credentials(session)},
            api_key=consumer_publishable_key,
        )
        return ConsumerSession.from_dict(required_field(data, "consumer_session"))

    # Financial connections

    async def create_link_account_session(
        self,
        session: ConsumerSession,
        consumer_publishable_key: Optional[str] = None,
    ) -> LinkAccountSession:
        data = await self._client.post(
            "/v1/consumers/link_account_sessions",
            data={"credentials": self._credentials(session)},
            api_key=consumer_publishable_key,
        )
        return LinkAccountSession.from_dict(data)

    # Payment details

    async def create_payment_details(
        self,
        session: ConsumerSession,
        card: Mapping[str, Any],
        billing_details: Optional[Mapping[str, Any]] = None,
        consumer_publishable_key: Optional[str] = None,
    ) -> PaymentDetails:
        """Save a card to the consumer account.

        ``card`` holds the raw card fields (number, exp_month, exp_year, cvc).
        The CVC is not stored by the server; it is carried on the returned
        PaymentDetails so it can be sent when confirming the payment.
        """
        params: Dict[str, Any] = {
            "credentials": self._credentials(session),
            "type": "card",
            "card": {k: v for k, v in card.items() if k != "cvc"},
            "billing_email_address": session.email_address,
            "billing_address": dict(billing_details) if billing_details else None,
            "active": False,
        }
        data = await self._client.post(
            "/v1/consumers/payment_details",
            data=params,
            api_key=consumer_publishable_key,
        )
        details = PaymentDetails.from_dict(required_field(data, "redacted_payment_details"))
        cvc = card.get("cvc")
        if cvc:
            details = replace(details, cvc=str(cvc))
        return details

    async def create_payment_details_from_linked_account(
        self,
        session: ConsumerSession,
        linked_account_id: str,
        consumer_publishable_key: Optional[str] = None,
    ) -> PaymentDetails:
        params = {
            "credentials": self._credentials(session),
            "type": "bank_account",
            "bank_account": {"account": linked_account_id},
            "is_default": True,
        }
        data = await self._client.post(
            "/v1/consumers/payment_details",
            data=params,
            api_key=consumer_publishable_key,
        )
        return PaymentDetails.from_dict(required_field(data, "redacted_payment_details"))

    async def list_payment_details(
        self,
        session: ConsumerSession,
        consumer_publishable_key: Optional[str] = None,
    ) -> List[PaymentDetails]:
        data = await self._client.post(
            "/v1/consumers/payment_details/list",
            data={
                "credentials": self._credentials(session),
                "types": ["card", "bank_account"],
            },
            api_key=consumer_publishable_key,
        )
        return [
            PaymentDetails.from_dict(item)
            for item in data.get("redacted_payment_details", [])
        ]

    async def share_payment_details(
        self,
        session: ConsumerSession,
        payment_details_id: str,
        consumer_publishable_key: Optional[str] = None,
    ) -> PaymentDetailsShareResponse:
        data = await self._client.post(
            "/v1/consumers/payment_details/share",
            data={
                "credentials": self._credentials(session),
                "id": payment_details_id,
            },
            api_key=consumer_publishable_key,
        )
        return PaymentDetailsShareResponse.from_dict(data)

    async def delete_payment_details(
        self,
        session: ConsumerSession,
        payment_details_id: str,
        consumer_publishable_key: Optional[str] = None,
    ) -> None:
        await self._client.delete(
            f"/v1/consumers/payment_details/{payment_details_id}",
            data={"credentials": self._credentials(session)},
            api_key=consumer_publishable_key,
        )

    async def update_payment_details(
        self,
        session: ConsumerSession,
        payment_details_id: str,
        update_params: UpdatePaymentDetailsParams,
        consumer_publishable_key: Optional[str] = None,
    ) -> PaymentDetails:
        params = {"credentials": self._credentials(session)}
        params.update(update_params.to_params())
        data = await self._client.post(
            f"/v1/consumers/payment_details/{payment_details_id}",
            data=params,
            api_key=consumer_publishable_key,
        )
        return PaymentDetails.from_dict(required_field(data, "redacted_payment_details"))

    # Private helpers

    @staticmethod
    def _credentials(session: ConsumerSession) -> Dict[str, str]:
        return {"consumer_session_client_secret": session.client_secret}

    def _remember(self, session: ConsumerSession) -> None:
        self._cookie_store.write(CookieKey.SESSION, session.client_secret)
