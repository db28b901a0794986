import os

os.environ["API_BASE_URL"] = "http://backend.test"
os.environ["STRIPE_PUBLISHABLE_KEY"] = "pk_test_front"
os.environ["PUBLIC_BASE_URL"] = "http://front.test"
os.environ["PRICE_FEED_ENABLED"] = "false"
os.environ["CORS_ORIGINS"] = "http://front.test"

import httpx
import pytest
from managers.backend_manager import BackendConnectionManager
from managers.price_manager import PriceFeedManager
from managers.workflow_manager import WorkflowManager
from utils.settings import get_settings


class FakeBackend:
    """Canned backend answers keyed by (method, path); every request is recorded."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, body=None, status_code=200):
        self.routes[(method, path)] = (status_code, body if body is not None else {})

    def add_handler(self, method, path, handler):
        self.routes[(method, path)] = handler

    def fail(self, method, path):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)
        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {request.url.path}"})
        if callable(route):
            return route(request)
        status_code, body = route
        return httpx.Response(status_code, json=body)

    def called(self, method, path):
        return [r for r in self.calls if r.method == method and r.url.path == path]


@pytest.fixture(autouse=True)
def reset_singletons():
    get_settings.cache_clear()
    BackendConnectionManager.reset()
    PriceFeedManager.reset()
    WorkflowManager.reset()
    yield
    WorkflowManager.reset()
    PriceFeedManager.reset()
    BackendConnectionManager.reset()
    get_settings.cache_clear()


@pytest.fixture
def backend():
    fake = FakeBackend()
    BackendConnectionManager().transport = httpx.MockTransport(fake.handle)
    return fake
