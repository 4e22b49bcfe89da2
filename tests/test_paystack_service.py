"""Tests for the Paystack gateway adapter against an httpx mock transport."""

from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from app.domain.errors import ConfigurationError, GatewayRejected, NetworkError, ReferenceNotFoundUpstream
from app.services.paystack_service import PaystackService

from conftest import PAYSTACK_BASE_URL, TEST_PAYSTACK_KEY, PaystackStub


def _service(handler: Callable[[httpx.Request], httpx.Response], secret_key=TEST_PAYSTACK_KEY) -> PaystackService:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return PaystackService(secret_key, base_url=PAYSTACK_BASE_URL, timeout_seconds=2.0, client=client)


def _fixed(status_code: int, **kwargs) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **kwargs)

    return handler


class TestConfiguration:
    @pytest.mark.parametrize("secret_key", [None, "", "pk_test_123", "sk_prod_123"])
    def test_bad_credentials_fail_before_network(self, secret_key) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={})

        service = _service(handler, secret_key=secret_key)

        with pytest.raises(ConfigurationError):
            service.initialize_transaction(100, "a@x.com", "PAY-1-AAAAAAAA")
        with pytest.raises(ConfigurationError):
            service.verify_transaction("PAY-1-AAAAAAAA")
        assert requests == []

    @pytest.mark.parametrize(
        "secret_key,mode",
        [("sk_test_abc", "test"), ("sk_live_abc", "live"), ("nope", None), (None, None)],
    )
    def test_mode(self, secret_key, mode) -> None:
        assert PaystackService(secret_key, client=httpx.Client()).mode == mode


class TestInitialize:
    def test_sends_authorized_json_request(self, paystack_stub: PaystackStub) -> None:
        service = _service(paystack_stub)

        data = service.initialize_transaction(5000, "a@x.com", "PAY-1-AAAAAAAA", callback_url="https://shop.test/cb")

        assert data["authorization_url"] == "https://checkout.paystack.test/PAY-1-AAAAAAAA"
        assert data["access_code"] == "ac_stub"
        [request] = paystack_stub.requests
        assert request.method == "POST"
        assert str(request.url) == f"{PAYSTACK_BASE_URL}/transaction/initialize"
        assert request.headers["Authorization"] == f"Bearer {TEST_PAYSTACK_KEY}"
        assert json.loads(request.content) == {
            "amount": 5000,
            "email": "a@x.com",
            "reference": "PAY-1-AAAAAAAA",
            "callback_url": "https://shop.test/cb",
        }

    def test_callback_url_omitted_when_unset(self, paystack_stub: PaystackStub) -> None:
        _service(paystack_stub).initialize_transaction(5000, "a@x.com", "PAY-1-AAAAAAAA")

        assert "callback_url" not in json.loads(paystack_stub.requests[0].content)

    def test_http_error_is_rejected(self) -> None:
        service = _service(_fixed(401, json={"status": False, "message": "Invalid key"}))

        with pytest.raises(GatewayRejected) as excinfo:
            service.initialize_transaction(5000, "a@x.com", "PAY-1-AAAAAAAA")

        assert excinfo.value.upstream_status == 401
        assert excinfo.value.message == "Invalid key"

    def test_unconfirmed_body_is_rejected(self) -> None:
        service = _service(_fixed(200, json={"status": False, "message": "Duplicate reference"}))

        with pytest.raises(GatewayRejected, match="Duplicate reference"):
            service.initialize_transaction(5000, "a@x.com", "PAY-1-AAAAAAAA")

    def test_missing_authorization_url_is_rejected(self) -> None:
        service = _service(_fixed(200, json={"status": True, "data": {"access_code": "x"}}))

        with pytest.raises(GatewayRejected):
            service.initialize_transaction(5000, "a@x.com", "PAY-1-AAAAAAAA")

    def test_non_json_body_is_rejected(self) -> None:
        service = _service(_fixed(200, text="<html>maintenance</html>"))

        with pytest.raises(GatewayRejected):
            service.initialize_transaction(5000, "a@x.com", "PAY-1-AAAAAAAA")

    @pytest.mark.parametrize("error_type", [httpx.ConnectError, httpx.ReadTimeout])
    def test_transport_failures_are_network_errors(self, error_type) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error_type("boom", request=request)

        with pytest.raises(NetworkError):
            _service(handler).initialize_transaction(5000, "a@x.com", "PAY-1-AAAAAAAA")


class TestVerify:
    def test_returns_gateway_data(self, paystack_stub: PaystackStub) -> None:
        paystack_stub.verify_status = "failed"

        data = _service(paystack_stub).verify_transaction("PAY-1-AAAAAAAA")

        assert data == {"reference": "PAY-1-AAAAAAAA", "status": "failed"}
        assert paystack_stub.requests[0].url.path == "/transaction/verify/PAY-1-AAAAAAAA"

    def test_not_found_upstream(self, paystack_stub: PaystackStub) -> None:
        paystack_stub.verify_http_status = 404

        with pytest.raises(ReferenceNotFoundUpstream) as excinfo:
            _service(paystack_stub).verify_transaction("PAY-1-AAAAAAAA")

        assert excinfo.value.upstream_status == 404

    def test_server_error(self, paystack_stub: PaystackStub) -> None:
        paystack_stub.verify_http_status = 502

        with pytest.raises(GatewayRejected) as excinfo:
            _service(paystack_stub).verify_transaction("PAY-1-AAAAAAAA")

        assert not isinstance(excinfo.value, ReferenceNotFoundUpstream)
        assert excinfo.value.upstream_status == 502
