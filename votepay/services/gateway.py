import threading
import time

import requests
from flask import current_app

from votepay.errors import GatewayFailure, GatewayInitiationFailed

_stamp_lock = threading.Lock()
_last_stamp = 0


def generate_external_id(prefix):
    """Return ``<prefix>_<nanoseconds>``, strictly increasing within the process."""
    global _last_stamp
    with _stamp_lock:
        stamp = max(time.time_ns(), _last_stamp + 1)
        _last_stamp = stamp
    return f"{prefix}_{stamp}"


class PaymentGatewayClient:
    """Mobile-money gateway: outbound payment push and status lookup.

    Results of a push arrive later on the callback URL; this client only
    reports whether the gateway accepted the request.
    """

    def __init__(
        self,
        url,
        token="",
        merchant_id="",
        currency="KES",
        mobile_money_sp="M-Pesa",
        callback_url="",
        timeout=30.0,
        verify_tls=True,
        status_url="",
        session=None,
    ):
        self.url = url
        self.token = token
        self.merchant_id = merchant_id
        self.currency = currency
        self.mobile_money_sp = mobile_money_sp
        self.callback_url = callback_url
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.status_url = status_url
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            url=config["GATEWAY_URL"],
            token=config["GATEWAY_TOKEN"],
            merchant_id=config["GATEWAY_MERCHANT_ID"],
            currency=config["GATEWAY_CURRENCY"],
            mobile_money_sp=config["GATEWAY_MOBILE_MONEY_SP"],
            callback_url=config["GATEWAY_CALLBACK_URL"],
            timeout=config["GATEWAY_TIMEOUT"],
            verify_tls=config["GATEWAY_VERIFY_TLS"],
            status_url=config.get("GATEWAY_STATUS_URL", ""),
        )

    def _headers(self):
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _post(self, url, payload):
        try:
            response = self.session.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
                verify=self.verify_tls,
            )
        except requests.exceptions.Timeout as exc:
            raise GatewayFailure(
                "Payment gateway timed out", {"timeout": self.timeout}
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise GatewayFailure(f"Failed to reach payment gateway: {exc}") from exc

        current_app.logger.info("Gateway response (%s): %s", response.status_code, response.text)

        if not response.ok:
            raise GatewayFailure(
                "Payment gateway rejected the request",
                {"status_code": response.status_code},
            )
        return response

    def initiate_payment(self, phone, amount, external_id):
        payload = {
            "impalaMerchantId": self.merchant_id,
            "currency": self.currency,
            "amount": amount,
            "payerPhone": phone,
            "mobileMoneySP": self.mobile_money_sp,
            "externalId": external_id,
            "callbackUrl": self.callback_url,
        }
        try:
            self._post(self.url, payload)
        except GatewayFailure as exc:
            current_app.logger.warning(
                "Payment initiation for %s failed: %s", external_id, exc
            )
            raise GatewayInitiationFailed(exc.message, exc.context) from exc

        current_app.logger.info("Payment initiated for %s", external_id)
        return external_id

    def query_status(self, external_id):
        """Ask the gateway for a transaction's status.

        Returns the ``transactionStatus`` string, or ``None`` when the gateway
        has no verdict yet.
        """
        if not self.status_url:
            raise GatewayFailure("GATEWAY_STATUS_URL is not configured")

        response = self._post(
            self.status_url,
            {"impalaMerchantId": self.merchant_id, "externalId": external_id},
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise GatewayFailure(
                "Payment gateway returned a non-JSON status", {"external_id": external_id}
            ) from exc

        if not isinstance(data, dict):
            return None
        status = data.get("transactionStatus")
        if not isinstance(status, str):
            return None
        return status.strip() or None


def get_payment_gateway():
    return current_app.extensions["payment_gateway"]
