"""HTTP client for the initiate / confirm deletion endpoints.

Transport failures and 5xx responses are retryable and raise
``DeletionNetworkError`` after the retry budget is spent. 4xx responses are
application rejections and raise ``DeletionRejectedError`` at once: they
need new input or a fresh initiation, not a retry.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx

from app.client.session_bridge import (
    ACCOUNT_TYPES,
    PendingDeletionSession,
    SessionStore,
    is_valid_email,
)
from app.utils.constants import API_PREFIX
from app.utils.logger import get_logger

logger = get_logger(__name__)


class DeletionClientError(Exception):
    retryable = False


class ClientValidationError(DeletionClientError):
    """Input rejected locally; never sent to the service."""


class DeletionNetworkError(DeletionClientError):
    retryable = True


class DeletionRejectedError(DeletionClientError):
    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"{status_code} {code}: {message}")


@dataclass
class InitiateResponse:
    session: PendingDeletionSession
    message: str
    redirect_url: Optional[str] = None


class DeletionClient:
    """Caller side of the two-step deletion flow."""

    def __init__(
        self,
        base_url: str,
        store: SessionStore | None = None,
        max_retries: int = 2,
        backoff_seconds: float = 0.5,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.store = store or SessionStore()
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.timeout = timeout
        self._transport = transport

    async def initiate(self, email: str, account_type: str) -> InitiateResponse:
        if not is_valid_email(email):
            raise ClientValidationError("Please enter a valid email address.")
        self._check_account_type(account_type)

        data = await self._post(
            f"{API_PREFIX}/{account_type}/initiate-deletion",
            {"email": email.strip()},
        )
        session = PendingDeletionSession(data["pendingToken"], account_type)
        self.store.save_session(session)
        return InitiateResponse(
            session=session,
            message=data.get("message", ""),
            redirect_url=data.get("redirectUrl"),
        )

    async def confirm(
        self,
        session: PendingDeletionSession,
        totp_code: str | None = None,
        email_code: str | None = None,
        sms_code: str | None = None,
    ) -> str:
        """Submit the proof; returns the server's confirmation message."""
        self._check_account_type(session.account_type)
        body: dict[str, str] = {"pendingToken": session.pending_token}
        if totp_code:
            body["totpCode"] = totp_code.strip()
        elif email_code and sms_code:
            body["emailCode"] = email_code.strip()
            body["smsCode"] = sms_code.strip()
        else:
            raise ClientValidationError("Enter your authenticator code, or both the email and SMS codes.")

        data = await self._post(f"{API_PREFIX}/{session.account_type}/confirm-deletion", body)
        self.store.clear_session()
        return data.get("message", "")

    @staticmethod
    def _check_account_type(account_type: str) -> None:
        if account_type not in ACCOUNT_TYPES:
            raise ClientValidationError(f"Unknown account type: {account_type}")

    async def _post(self, path: str, body: dict) -> dict:
        last_error: Exception | None = None
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            for attempt in range(self.max_retries + 1):
                if attempt:
                    await asyncio.sleep(self.backoff_seconds * (2 ** (attempt - 1)))
                try:
                    response = await client.post(path, json=body)
                except httpx.TransportError as e:
                    logger.warning(f"POST {path} transport error (attempt {attempt + 1}): {e}")
                    last_error = e
                    continue

                if response.status_code >= 500:
                    logger.warning(f"POST {path} returned {response.status_code} (attempt {attempt + 1})")
                    last_error = httpx.HTTPStatusError(
                        f"Server error {response.status_code}", request=response.request, response=response
                    )
                    continue
                if response.status_code >= 400:
                    raise self._rejection(response)
                return response.json()

        raise DeletionNetworkError(f"POST {path} failed after {self.max_retries + 1} attempts: {last_error}")

    @staticmethod
    def _rejection(response: httpx.Response) -> DeletionRejectedError:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        return DeletionRejectedError(
            response.status_code,
            payload.get("code", "UNKNOWN"),
            payload.get("message", "The request was rejected."),
        )
