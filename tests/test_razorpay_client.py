from unittest import mock

import pytest
import requests

from apps.payments.razorpay_client import RazorpayClient
from core.exceptions import GatewayError, PaymentConfigurationError


def _response(status_code, payload=None, text=""):
    response = mock.Mock(status_code=status_code, text=text)
    response.json.return_value = payload
    return response


def _client(session):
    return RazorpayClient("rzp_test_key", "rzp_test_secret", base_url="https://api.razorpay.test/v1/", session=session)


def test_missing_keys_are_a_configuration_error():
    with pytest.raises(PaymentConfigurationError):
        RazorpayClient("", "secret")


def test_create_order_posts_to_orders_endpoint():
    session = mock.MagicMock()
    session.request.return_value = _response(200, {"id": "order_1", "amount": 49900})

    order = _client(session).create_order(49900, "INR", "EDX_SPP_DPP_x_ABC123", {"plan_id": "Dpp"})

    assert order["id"] == "order_1"
    session.request.assert_called_once_with(
        "POST",
        "https://api.razorpay.test/v1/orders",
        timeout=15,
        json={"amount": 49900, "currency": "INR", "receipt": "EDX_SPP_DPP_x_ABC123", "notes": {"plan_id": "Dpp"}},
    )
    assert session.auth == ("rzp_test_key", "rzp_test_secret")


def test_fetch_order():
    session = mock.MagicMock()
    session.request.return_value = _response(200, {"id": "order_1", "status": "paid"})
    assert _client(session).fetch_order("order_1")["status"] == "paid"
    assert session.request.call_args.args == ("GET", "https://api.razorpay.test/v1/orders/order_1")


def test_gateway_error_description_is_surfaced():
    session = mock.MagicMock()
    session.request.return_value = _response(400, {"error": {"description": "Authentication failed"}})
    with pytest.raises(GatewayError) as excinfo:
        _client(session).fetch_order("order_1")
    assert str(excinfo.value.detail) == "Authentication failed"


def test_non_json_error_body():
    session = mock.MagicMock()
    response = _response(503, text="<html>")
    response.json.side_effect = ValueError("not json")
    session.request.return_value = response
    with pytest.raises(GatewayError) as excinfo:
        _client(session).fetch_order("order_1")
    assert str(excinfo.value.detail) == "The payment gateway rejected the request."


def test_network_failure_is_a_gateway_error():
    session = mock.MagicMock()
    session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(GatewayError):
        _client(session).create_order(100, "INR", "r", {})
