from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_application
from app.core.config import Settings
from app.domain.models import User
from app.infrastructure.persistence.sqlite import SQLitePersistence
from app.services.credential_service import CredentialService
from app.services.token_service import TokenService

TEST_JWT_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"
TEST_PAYSTACK_KEY = "sk_test_0123456789abcdef"
PAYSTACK_BASE_URL = "https://paystack.test"


class FakeGateway:
    """In-process stand-in for PaystackService used by ledger tests."""

    def __init__(self) -> None:
        self.initialize_calls: List[Dict[str, Any]] = []
        self.verify_calls: List[str] = []
        self.initialize_error: Optional[Exception] = None
        self.verify_error: Optional[Exception] = None
        self.verify_status = "success"

    def initialize_transaction(
        self,
        amount: int,
        email: str,
        reference: str,
        callback_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        self.initialize_calls.append(
            {"amount": amount, "email": email, "reference": reference, "callback_url": callback_url}
        )
        if self.initialize_error:
            raise self.initialize_error
        return {
            "authorization_url": f"https://checkout.paystack.test/{reference}",
            "access_code": "ac_test",
            "reference": reference,
        }

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        self.verify_calls.append(reference)
        if self.verify_error:
            raise self.verify_error
        return {"reference": reference, "status": self.verify_status, "gateway_response": "Approved"}


class PaystackStub:
    """httpx.MockTransport handler imitating the two Paystack endpoints."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.verify_status = "success"
        self.verify_http_status = 200
        self.initialize_http_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/transaction/initialize":
            if self.initialize_http_status != 200:
                return httpx.Response(self.initialize_http_status, json={"status": False, "message": "Invalid key"})
            body = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": f"https://checkout.paystack.test/{body['reference']}",
                        "access_code": "ac_stub",
                        "reference": body["reference"],
                    },
                },
            )
        if path.startswith("/transaction/verify/"):
            if self.verify_http_status != 200:
                return httpx.Response(
                    self.verify_http_status,
                    json={"status": False, "message": "Transaction reference not found"},
                )
            reference = path.rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Verification successful",
                    "data": {"reference": reference, "status": self.verify_status},
                },
            )
        return httpx.Response(404, json={"status": False, "message": "Unknown route"})

    @property
    def verify_requests(self) -> List[httpx.Request]:
        return [request for request in self.requests if "/transaction/verify/" in request.url.path]


@pytest.fixture
def database_path(tmp_path: Path) -> Path:
    return tmp_path / "app.db"


@pytest.fixture
def settings(database_path: Path) -> Settings:
    return Settings(
        database_path=database_path,
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,
        paystack_secret_key=TEST_PAYSTACK_KEY,
        paystack_base_url=PAYSTACK_BASE_URL,
        paystack_callback_url=None,
        admin_default_name="Site Admin",
        admin_default_email="admin@example.com",
        admin_default_password="admin-secret",
        log_level="WARNING",
    )


@pytest.fixture
def persistence(database_path: Path) -> Iterator[SQLitePersistence]:
    store = SQLitePersistence(database_path)
    yield store
    store.close()


@pytest.fixture
def credential_service(persistence: SQLitePersistence) -> CredentialService:
    return CredentialService(persistence, bcrypt_rounds=4)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def alice(credential_service: CredentialService) -> User:
    return credential_service.register("Alice", "alice@example.com", "alice-secret")


@pytest.fixture
def bob(credential_service: CredentialService) -> User:
    return credential_service.register("Bob", "bob@example.com", "bob-secret")


@pytest.fixture
def admin(credential_service: CredentialService) -> User:
    user = credential_service.ensure_admin("Root", "root@example.com", "root-secret")
    assert user is not None
    return user


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def paystack_stub() -> PaystackStub:
    return PaystackStub()


@pytest.fixture
def client(settings: Settings, paystack_stub: PaystackStub) -> Iterator[TestClient]:
    http_client = httpx.Client(transport=httpx.MockTransport(paystack_stub))
    app = create_application(settings, paystack_client=http_client)
    with TestClient(app) as test_client:
        yield test_client


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
