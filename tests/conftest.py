# RestoPOS API Test Suite - Shared Configuration and Fixtures
#
# This module provides:
# - Test database provisioning (ephemeral SQLite per test run)
# - An in-process server (httpx over WSGI) or an external one
# - Multi-tenant fixtures (JUVISY demo restaurant + a second restaurant)
# - Authentication helpers
# - Failure message formatting

import os
import time
import shutil
import tempfile
from pathlib import Path
from typing import Generator, Optional, Dict, Any
from dataclasses import dataclass

import pytest
import httpx


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class TestConfig:
    """Test configuration with environment variable overrides."""
    # Empty = run the app in-process through httpx.WSGITransport
    backend_base_url: str = os.environ.get("TEST_BACKEND_URL", "")

    request_timeout: float = float(os.environ.get("TEST_REQUEST_TIMEOUT", "30"))

    # Demo credentials (see restopos.factories.seed_demo_data)
    demo_password: str = "password"

    seed: int = int(os.environ.get("TEST_SEED", str(int(time.time()))))


# =============================================================================
# FAILURE MESSAGE HELPER
# =============================================================================

class TestFailure(Exception):
    """
    Custom exception with detailed, human-readable failure messages.

    Structure:
    1. Scenario: What was being tested
    2. Expected: What should have happened
    3. Actual: What actually happened
    4. Likely Cause: Most probable reason for failure
    5. Code Location: Where to look in the codebase
    """

    __test__ = False

    def __init__(
        self,
        scenario: str,
        expected: str,
        actual: str,
        likely_cause: str,
        code_location: str,
        response: Optional[httpx.Response] = None,
        extra_context: Optional[Dict[str, Any]] = None
    ):
        self.scenario = scenario
        self.expected = expected
        self.actual = actual
        self.likely_cause = likely_cause
        self.code_location = code_location
        self.response = response
        self.extra_context = extra_context or {}

        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = [
            "",
            "=" * 80,
            "TEST FAILURE DETAILS",
            "=" * 80,
            f"SCENARIO: {self.scenario}",
            "-" * 80,
            f"EXPECTED: {self.expected}",
            f"ACTUAL: {self.actual}",
            "-" * 80,
            f"LIKELY CAUSE: {self.likely_cause}",
            f"CODE LOCATION: {self.code_location}",
        ]

        if self.response is not None:
            lines.extend([
                "-" * 80,
                f"HTTP STATUS: {self.response.status_code}",
                f"RESPONSE BODY: {self.response.text[:1000]}",
            ])

        if self.extra_context:
            lines.append("-" * 80)
            lines.append("EXTRA CONTEXT:")
            for key, value in self.extra_context.items():
                lines.append(f"  {key}: {value}")

        lines.append("=" * 80)
        return "\n".join(lines)


def assert_response(
    response: httpx.Response,
    expected_status: int,
    scenario: str,
    code_location: str,
    expected_body_contains: Optional[str] = None
):
    """
    Assert HTTP response status and optionally body content.
    Raises TestFailure with detailed message on failure.
    """
    if response.status_code != expected_status:
        raise TestFailure(
            scenario=scenario,
            expected=f"HTTP {expected_status}",
            actual=f"HTTP {response.status_code}",
            likely_cause=_infer_cause(response),
            code_location=code_location,
            response=response
        )

    if expected_body_contains and expected_body_contains not in response.text:
        raise TestFailure(
            scenario=scenario,
            expected=f"Response body contains: {expected_body_contains}",
            actual=f"Response body: {response.text[:500]}",
            likely_cause="Response format changed or wrong endpoint hit",
            code_location=code_location,
            response=response
        )


def _infer_cause(response: httpx.Response) -> str:
    """Infer likely cause from response status/body."""
    causes = {
        400: "Invalid request - missing required field or validation failed",
        401: "Authentication failed - token invalid/missing or session expired",
        402: "Subscription limit reached or feature not in the plan",
        403: "Permission denied - the role lacks the required permission",
        404: "Resource not found - wrong ID, deleted, or another restaurant's row",
        409: "Conflict - duplicate code/PIN or insufficient stock",
        429: "Account locked after too many failed logins",
        500: "Server error - check backend logs for stack trace",
    }
    return causes.get(response.status_code, f"Unexpected status code {response.status_code}")


# =============================================================================
# HTTP CLIENT WITH AUTH HELPERS
# =============================================================================

class APIClient:
    """
    HTTP client wrapper with authentication and convenience methods.

    Pass `transport` to talk to an in-process WSGI app instead of a socket.
    """

    __test__ = False

    def __init__(self, base_url: str, timeout: float = 30.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self.token: Optional[str] = None
        self.current_user: Optional[Dict] = None
        self.restaurant_id: Optional[int] = None

    def _headers(self) -> Dict:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> httpx.Response:
        return self.client.get(path, headers=self._headers(), params=params, **kwargs)

    def post(self, path: str, json: Optional[Dict] = None, **kwargs) -> httpx.Response:
        return self.client.post(path, headers=self._headers(), json=json, **kwargs)

    def put(self, path: str, json: Optional[Dict] = None, **kwargs) -> httpx.Response:
        return self.client.put(path, headers=self._headers(), json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> httpx.Response:
        return self.client.delete(path, headers=self._headers(), **kwargs)

    def _store_login(self, response: httpx.Response) -> bool:
        if response.status_code != 200:
            return False
        data = response.json()
        self.token = data.get("token")
        self.current_user = data.get("user")
        self.restaurant_id = data.get("restaurant_id")
        return True

    def login(self, email: str, password: str) -> bool:
        """Authenticate and store token."""
        return self._store_login(self.post("/api/auth/login", json={"email": email, "password": password}))

    def pin_login(self, pin: str, restaurant_id: int) -> bool:
        """Waiter login by 4-digit PIN."""
        return self._store_login(
            self.post("/api/auth/pin-login", json={"pin": pin, "restaurant_id": restaurant_id})
        )

    def logout(self) -> bool:
        """Logout and clear token."""
        if not self.token:
            return True
        response = self.post("/api/auth/logout")
        if response.status_code == 200:
            self.token = None
            self.current_user = None
            self.restaurant_id = None
            return True
        return False

    def validate_session(self) -> bool:
        if not self.token:
            return False
        return self.post("/api/auth/validate").status_code == 200

    def close(self):
        self.client.close()


# =============================================================================
# SERVER MANAGEMENT
# =============================================================================

class ServerManager:
    """
    Builds the Flask app on an ephemeral SQLite file and seeds it.

    With TEST_BACKEND_URL set, the external server is used as-is and is
    expected to hold the demo data (flask --app restopos system seed).
    """

    def __init__(self, config: TestConfig):
        self.config = config
        self.app = None
        self.temp_dir: Optional[Path] = None

    @property
    def external(self) -> bool:
        return bool(self.config.backend_base_url)

    def start(self):
        from restopos import create_app
        from restopos.extensions import db
        from restopos.factories import seed_demo_data

        self.temp_dir = Path(tempfile.mkdtemp(prefix="restopos_test_"))
        self.app = create_app({
            "TESTING": True,
            "SECRET_KEY": "api-tests",
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{self.temp_dir / 'test_restopos.sqlite3'}",
            "BCRYPT_ROUNDS": 4,
            "EXCHANGE_RATE": "2500",
        })

        with self.app.app_context():
            db.create_all()
            seed_demo_data()

    def transport(self) -> Optional[httpx.BaseTransport]:
        if self.external:
            return None
        return httpx.WSGITransport(app=self.app)

    def base_url(self) -> str:
        return self.config.backend_base_url or "http://restopos.test"

    def stop(self):
        if self.temp_dir and self.temp_dir.exists():
            shutil.rmtree(self.temp_dir, ignore_errors=True)


# =============================================================================
# PYTEST FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    return TestConfig()


@pytest.fixture(scope="session")
def server_manager(test_config: TestConfig) -> Generator[ServerManager, None, None]:
    """Server is set up once per test session."""
    manager = ServerManager(test_config)
    if not manager.external:
        manager.start()
    yield manager
    manager.stop()


def _new_client(test_config: TestConfig, server_manager: ServerManager) -> APIClient:
    return APIClient(
        server_manager.base_url(),
        timeout=test_config.request_timeout,
        transport=server_manager.transport(),
    )


@pytest.fixture(scope="session")
def api_client(test_config: TestConfig, server_manager: ServerManager) -> Generator[APIClient, None, None]:
    client = _new_client(test_config, server_manager)
    yield client
    client.close()


@pytest.fixture
def client(api_client: APIClient) -> APIClient:
    """API client with auth state cleared."""
    api_client.token = None
    api_client.current_user = None
    api_client.restaurant_id = None
    return api_client


@pytest.fixture
def new_client(test_config: TestConfig, server_manager: ServerManager):
    """Factory for extra independent clients (second tenant, waiter...)."""
    clients = []

    def _make() -> APIClient:
        c = _new_client(test_config, server_manager)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()


def _login_or_fail(client: APIClient, email: str, password: str) -> APIClient:
    if not client.login(email, password):
        pytest.fail(f"Failed to login as {email}")
    return client


@pytest.fixture
def admin_client(client: APIClient, test_config: TestConfig) -> APIClient:
    """Authenticated admin of the JUVISY demo restaurant."""
    return _login_or_fail(client, "admin@juvisy.com", test_config.demo_password)


@pytest.fixture
def cashier_client(client: APIClient, test_config: TestConfig) -> APIClient:
    return _login_or_fail(client, "caisse@juvisy.com", test_config.demo_password)


@pytest.fixture
def stock_client(client: APIClient, test_config: TestConfig) -> APIClient:
    return _login_or_fail(client, "stock@juvisy.com", test_config.demo_password)


@pytest.fixture
def super_admin_client(new_client, test_config: TestConfig) -> APIClient:
    return _login_or_fail(new_client(), "superadmin@juvisy.com", test_config.demo_password)


@pytest.fixture(scope="session")
def second_restaurant(test_config: TestConfig, server_manager: ServerManager) -> Dict:
    """
    A second tenant created through the super-admin API.

    Returns the create response (restaurant, subscription, admin, admin_credentials).
    """
    root = _new_client(test_config, server_manager)
    try:
        _login_or_fail(root, "superadmin@juvisy.com", test_config.demo_password)
        response = root.post("/api/restaurants", json={
            "name": f"Le Baobab {test_config.seed}",
            "email": f"contact{test_config.seed}@baobab.cd",
            "plan": "premium",
        })
        assert_response(
            response, 201,
            scenario="Create second restaurant",
            code_location="backend/restopos/routes/restaurants.py:create_restaurant_route"
        )
        return response.json()
    finally:
        root.close()


@pytest.fixture
def beta_client(new_client, second_restaurant: Dict) -> APIClient:
    """Authenticated admin of the second restaurant (different tenant)."""
    credentials = second_restaurant["admin_credentials"]
    return _login_or_fail(new_client(), credentials["email"], credentials["password"])


@pytest.fixture
def juvisy_products(admin_client: APIClient) -> Dict[str, Dict]:
    """Demo catalogue keyed by product code."""
    response = admin_client.get("/api/products")
    assert_response(
        response, 200,
        scenario="List demo products",
        code_location="backend/restopos/routes/products.py:list_products"
    )
    return {p["code"]: p for p in response.json()["items"]}


# =============================================================================
# TEST MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "smoke: Quick smoke tests for critical paths")
    config.addinivalue_line("markers", "full: Full regression tests")
    config.addinivalue_line("markers", "auth: Authentication tests")
    config.addinivalue_line("markers", "rbac: Role-based access control tests")
    config.addinivalue_line("markers", "products: Product and stock tests")
    config.addinivalue_line("markers", "sales: Sales and receipt tests")
    config.addinivalue_line("markers", "tenant: Multi-tenant isolation tests")
