import time
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ValidationError

from paygate.observability.logging import log
from paygate.settings import settings
from paygate.store.models import TransactionDetails


class GatewayTransportError(Exception):
    """The request could not complete or the reply was not a readable JSON object."""


class ValidateUserResponse(BaseModel):
    success: bool = False
    transaction: Optional[Dict[str, Any]] = None
    message: Optional[str] = None

    @property
    def details(self) -> Optional[TransactionDetails]:
        return TransactionDetails.from_dict(self.transaction)


class CompleteTransactionResponse(BaseModel):
    success: bool = False
    message: Optional[str] = None


def _join(base_url: str, path: str) -> str:
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


class GatewayClient:
    """
    Backend calls of the confirmation flow.

    POST {base}/api/validate-user         {transactionId, username}
    POST {base}/api/complete-transaction  {transactionId, username, pin}

    Non-2xx replies with a JSON body are returned like any other reply (the
    body carries success/message). No retries; no timeout unless configured.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        validate_user_path: Optional[str] = None,
        complete_transaction_path: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url if base_url is not None else settings.GATEWAY_BASE_URL
        self.validate_user_url = _join(self.base_url, validate_user_path or settings.VALIDATE_USER_PATH)
        self.complete_transaction_url = _join(
            self.base_url, complete_transaction_path or settings.COMPLETE_TRANSACTION_PATH
        )
        self.timeout = timeout if timeout is not None else settings.GATEWAY_TIMEOUT_SEC
        self._transport = transport

    async def _post(self, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        start = time.time()
        log(event="gateway_request", url=url, body=body)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=body)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            elapsed_ms = int((time.time() - start) * 1000)
            raise GatewayTransportError(f"{type(e).__name__}: {e} (url={url}, elapsedMs={elapsed_ms})") from e

        if not isinstance(data, dict):
            raise GatewayTransportError(f"unexpected reply shape from {url}: {type(data).__name__}")
        log(
            event="gateway_response",
            url=url,
            statusCode=int(resp.status_code),
            success=bool(data.get("success")),
            elapsedMs=int((time.time() - start) * 1000),
        )
        return data

    async def validate_user(self, transaction_id: str, username: str) -> ValidateUserResponse:
        data = await self._post(
            self.validate_user_url,
            {"transactionId": transaction_id, "username": username},
        )
        try:
            return ValidateUserResponse.model_validate(data)
        except ValidationError as e:
            raise GatewayTransportError(f"invalid validate-user reply: {e}") from e

    async def complete_transaction(self, transaction_id: str, username: str, pin: str) -> CompleteTransactionResponse:
        data = await self._post(
            self.complete_transaction_url,
            {"transactionId": transaction_id, "username": username, "pin": pin},
        )
        try:
            return CompleteTransactionResponse.model_validate(data)
        except ValidationError as e:
            raise GatewayTransportError(f"invalid complete-transaction reply: {e}") from e
