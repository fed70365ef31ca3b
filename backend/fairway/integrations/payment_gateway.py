import base64
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from fairway.config import config
from fairway.models.payments import GatewayError, GatewayErrorBody, GatewayResult
from fairway.utils.logging import logger

DYNAMIC_DESCRIPTOR = "Fairway fantasy golf"


class PaymentGatewayError(Exception):
    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class PaymentGateway(Protocol):
    async def process_payment(
        self, merchant_ref: str, amount: int, currency: str, payment_token: str
    ) -> GatewayResult: ...

    async def process_withdrawal(
        self, merchant_ref: str, amount: int, currency: str, payment_token: str
    ) -> GatewayResult: ...


def parse_gateway_error(response: httpx.Response) -> GatewayError:
    try:
        return GatewayErrorBody.model_validate_json(response.content).error
    except ValidationError:
        return GatewayError()


class HttpPaymentGateway:
    """Async client for the card processor's payment hub API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport
        self.headers = {
            "Authorization": f"Basic {base64.b64encode(api_key.encode()).decode()}",
            "Content-Type": "application/json",
        }

    async def _post(self, endpoint: str, body: dict[str, Any]) -> GatewayResult:
        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(
                headers=self.headers, timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(url, json=body)
                response.raise_for_status()
                return GatewayResult.model_validate(response.json())
        except httpx.HTTPStatusError as exc:
            response = exc.response
            logger.warning(
                f"Payment gateway rejected {endpoint}: {response.status_code} {response.text}"
            )
            error = parse_gateway_error(response)
            raise PaymentGatewayError(
                f"Payment gateway request failed: {response.status_code} "
                f"{response.reason_phrase} - {error.message or response.text}",
                code=error.code,
            ) from exc
        except httpx.HTTPError as exc:
            raise PaymentGatewayError(f"Payment gateway unreachable: {exc}") from exc

    async def process_payment(
        self, merchant_ref: str, amount: int, currency: str, payment_token: str
    ) -> GatewayResult:
        return await self._post(
            "/paymenthub/v1/payments",
            {
                "merchantRefNum": merchant_ref,
                "amount": amount,
                "currencyCode": currency,
                "paymentHandleToken": payment_token,
                "merchantDescriptor": {"dynamicDescriptor": DYNAMIC_DESCRIPTOR},
            },
        )

    async def process_withdrawal(
        self, merchant_ref: str, amount: int, currency: str, payment_token: str
    ) -> GatewayResult:
        return await self._post(
            "/paymenthub/v1/originalcredits",
            {
                "merchantRefNum": merchant_ref,
                "amount": amount,
                "currencyCode": currency,
                "paymentHandleToken": payment_token,
                "description": "Withdrawal",
                "dupCheck": True,
            },
        )


def get_payment_gateway() -> PaymentGateway:
    return HttpPaymentGateway(
        config.payment_gateway_base_url,
        config.payment_gateway_api_key,
        config.payment_gateway_timeout_seconds,
    )
