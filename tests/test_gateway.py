import pytest
import requests
from razorpay.errors import BadRequestError, ServerError

from conftest import sign
from errors import GatewayError
from gateway import PaymentGateway


def test_create_order_passes_amount_and_auto_capture(gateway, razorpay_client):
    order = gateway.create_order(1800000, "INR", "rcpt_1")

    assert order.id == "order_test0001"
    assert order.amount == 1800000
    assert order.currency == "INR"
    razorpay_client.order.create.assert_called_once_with(
        data={"amount": 1800000, "currency": "INR", "receipt": "rcpt_1", "payment_capture": 1}
    )


@pytest.mark.parametrize("amount", [None, 0, -5])
def test_create_order_rejects_missing_or_tiny_amount(gateway, razorpay_client, amount):
    with pytest.raises(GatewayError):
        gateway.create_order(amount, "INR", "rcpt_1")
    razorpay_client.order.create.assert_not_called()


@pytest.mark.parametrize(
    "failure",
    [BadRequestError("bad amount"), ServerError("boom"), requests.ConnectionError("offline")],
)
def test_provider_failures_become_gateway_error(gateway, razorpay_client, failure):
    razorpay_client.order.create.side_effect = failure
    with pytest.raises(GatewayError) as exc_info:
        gateway.create_order(100, "INR", "rcpt_1")
    # provider detail stays in the logs
    assert exc_info.value.detail == "Failed to create payment order"


def test_verify_signature_accepts_only_matching_hmac(gateway):
    good = sign("order_1", "pay_1")
    assert gateway.verify_signature("order_1", "pay_1", good) is True
    assert gateway.verify_signature("order_1", "pay_2", good) is False
    assert gateway.verify_signature("order_2", "pay_1", good) is False
    assert gateway.verify_signature("order_1", "pay_1", sign("order_1", "pay_1", "other-secret")) is False
    assert gateway.verify_signature("order_1", "pay_1", good.upper()) is False


def test_test_payment_ids_get_no_special_treatment(gateway):
    assert gateway.verify_signature("order_1", "test_payment_1700000000", "anything") is False
    assert gateway.verify_signature("order_1", "test_payment_1700000000", "") is False


def test_verify_signature_handles_empty_and_non_ascii_input(gateway):
    assert gateway.verify_signature("", "pay_1", sign("", "pay_1")) is False
    assert gateway.verify_signature("order_1", "pay_1", "ßignature") is False


def test_gateway_without_secret_never_verifies(razorpay_client):
    unconfigured = PaymentGateway("rzp_test_key", "", client=razorpay_client)
    assert unconfigured.verify_signature("order_1", "pay_1", sign("order_1", "pay_1", "")) is False
