"""Financial connections API bindings.

Results of an auth session (OAuth callback, linked accounts) are produced
asynchronously on the server. Until they are ready the endpoints answer 202,
so they are fetched through APIPoller.
"""

from typing import Optional

import structlog

from paylink.api.client import APIClient
from paylink.core.config import get_settings
from paylink.core.models import AuthSessionOAuthResults, LinkedAccountList
from paylink.polling import APIPoller, PollRegistry, PollTimingOptions

log = structlog.get_logger()


class FinancialConnectionsAPI:
    """Endpoints under ``/v1/connections``."""

    def __init__(
        self,
        client: APIClient,
        poll_options: Optional[PollTimingOptions] = None,
        registry: Optional[PollRegistry] = None,
    ) -> None:
        self._client = client
        if poll_options is None:
            poll_options = PollTimingOptions.from_config(get_settings().polling)
        self._poll_options = poll_options
        self._registry = registry

    async def fetch_auth_session_oauth_results(
        self, auth_session_id: str, client_secret: str
    ) -> AuthSessionOAuthResults:
        data = await self._client.post(
            "/v1/connections/auth_sessions/oauth_results",
            data={"id": auth_session_id, "client_secret": client_secret},
        )
        return AuthSessionOAuthResults.from_dict(data)

    async def fetch_accounts(
        self, auth_session_id: str, client_secret: str
    ) -> LinkedAccountList:
        data = await self._client.get(
            "/v1/connections/auth_sessions/accounts",
            data={"id": auth_session_id, "client_secret": client_secret},
        )
        return LinkedAccountList.from_dict(data)

    async def poll_auth_session_oauth_results(
        self, auth_session_id: str, client_secret: str
    ) -> AuthSessionOAuthResults:
        """Poll the OAuth results until the institution callback is processed."""
        log.info("poll_oauth_results", auth_session_id=auth_session_id)
        poller = self._poller(
            lambda: self.fetch_auth_session_oauth_results(auth_session_id, client_secret)
        )
        return await poller.start()

    async def poll_accounts(
        self, auth_session_id: str, client_secret: str
    ) -> LinkedAccountList:
        """Poll the accounts list until the institution has returned it."""
        log.info("poll_accounts", auth_session_id=auth_session_id)
        poller = self._poller(
            lambda: self.fetch_accounts(auth_session_id, client_secret)
        )
        return await poller.start()

    def _poller(self, api_call) -> APIPoller:
        return APIPoller(api_call, self._poll_options, registry=self._registry)
