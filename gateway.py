"""
Razorpay payment gateway adapter

Creates orders through the Razorpay SDK and checks the signature the
checkout widget hands back to the browser after a payment completes.
"""

import hashlib
import hmac
import logging
from functools import lru_cache
from typing import Optional

import razorpay
import requests
from pydantic import BaseModel
from razorpay.errors import BadRequestError, GatewayError as RazorpayGatewayError, ServerError

import config
from errors import GatewayError

logger = logging.getLogger(__name__)


class OrderHandle(BaseModel):
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None


class PaymentGateway:
    def __init__(self, key_id: str, key_secret: str, client=None):
        self.key_id = key_id
        self._key_secret = key_secret
        self._client = client or razorpay.Client(auth=(key_id, key_secret))

    def create_order(self, amount: Optional[int], currency: str, receipt: str) -> OrderHandle:
        if amount is None or amount < config.MIN_ORDER_AMOUNT:
            raise GatewayError("Amount is required and must be at least 1 paise")
        options = {
            "amount": int(amount),
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        try:
            order = self._client.order.create(data=options)
        except (BadRequestError, ServerError, RazorpayGatewayError, requests.RequestException) as exc:
            logger.exception("Razorpay order creation failed for receipt %s", receipt)
            raise GatewayError("Failed to create payment order") from exc
        return OrderHandle(
            id=order["id"],
            amount=order.get("amount", amount),
            currency=order.get("currency", currency),
            receipt=order.get("receipt", receipt),
            status=order.get("status"),
        )

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not (order_id and payment_id and signature and self._key_secret):
            return False
        expected = hmac.new(
            self._key_secret.encode("utf-8"),
            f"{order_id}|{payment_id}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


@lru_cache
def get_gateway() -> PaymentGateway:
    return PaymentGateway(config.RAZORPAY_KEY_ID, config.RAZORPAY_KEY_SECRET)
