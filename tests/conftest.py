"""Shared fixtures: in-memory store with a controllable clock, fake integrations"""

import hashlib
import hmac
import json
import time
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from bizbud.api.deploy_client import DeployPlatform
from bizbud.auth import PasswordHasher, SessionManager
from bizbud.models.site import SiteSettings, content_key, settings_key
from bizbud.services.content_service import DEFAULT_FALLBACK_PATH
from bizbud.services.media_service import MediaHost
from bizbud.store import InMemoryStore
from bizbud.store.base import KeyValueStore
from bizbud.utils.config import AuthSettings, BillingSettings, Settings
from bizbud.utils.exceptions import DeployError, StoreUnavailableError, UploadFailedError

PLATFORM_TOKEN = "platform-secret-token"
WEBHOOK_SECRET = "whsec_test_secret"

SITE_PASSWORDS = {
    "acme": "acme-password",
    "beta": "beta-password",
}


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UnavailableStore(KeyValueStore):
    """Every operation fails as if Redis were down; calls are recorded"""

    def __init__(self):
        self.calls: List[str] = []

    def _fail(self, op: str):
        self.calls.append(op)
        raise StoreUnavailableError(f"{op} failed")

    def get(self, key):
        self._fail("get")

    def set(self, key, value, ttl_seconds=None, nx=False):
        self._fail("set")

    def delete(self, key):
        self._fail("delete")

    def keys(self, pattern):
        self._fail("keys")

    def lpush(self, key, *values):
        self._fail("lpush")

    def rpush(self, key, *values):
        self._fail("rpush")

    def lrange(self, key, start=0, end=-1):
        self._fail("lrange")

    def lrem(self, key, value, count=0):
        self._fail("lrem")

    def ping(self):
        self._fail("ping")


class FakeDeployer(DeployPlatform):
    def __init__(self, fail: bool = False, state: str = "building"):
        self.fail = fail
        self.state = state
        self.projects: List[Dict[str, Any]] = []
        self.deployments: List[str] = []

    def create_project(self, site_id, env_vars):
        if self.fail:
            raise DeployError("Vercel POST /v11/projects failed (500): boom", status_code=500)
        self.projects.append({"site_id": site_id, "env": dict(env_vars)})
        return f"prj_{site_id}"

    def trigger_deployment(self, project_id, site_id):
        self.deployments.append(project_id)
        return f"dpl_{site_id}"

    def get_deployment_status(self, site_id):
        if self.state == "unreachable":
            raise DeployError("Vercel GET /v6/deployments failed (503)", status_code=503)
        if self.state == "ready":
            return {"state": "ready", "url": self.site_url(site_id), "deployedAt": 1700000000000}
        return {"state": self.state}


class FakeMediaHost(MediaHost):
    def __init__(self, fail_upload: bool = False):
        self.fail_upload = fail_upload
        self.uploads: List[Dict[str, Any]] = []
        self.destroyed: List[str] = []
        self._counter = 0

    def upload(self, file, folder, filename=None):
        if self.fail_upload:
            raise UploadFailedError(service="cloudinary")
        self._counter += 1
        public_id = f"{folder}/img{self._counter}"
        self.uploads.append({"folder": folder, "filename": filename, "data": file.read()})
        return {
            "url": f"https://res.cloudinary.com/demo/image/upload/{public_id}.png",
            "publicId": public_id,
            "width": 800,
            "height": 600,
            "format": "png",
        }

    def destroy(self, public_id):
        self.destroyed.append(public_id)


def template_content() -> Dict[str, Any]:
    with open(DEFAULT_FALLBACK_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


def seed_site(
    store: KeyValueStore,
    hasher: PasswordHasher,
    site_id: str,
    password: str,
    content: Optional[Dict[str, Any]] = None,
    **settings_fields,
) -> None:
    settings = SiteSettings(admin_password_hash=hasher.hash(password), **settings_fields)
    store.set(settings_key(site_id), settings.to_store())
    store.set(
        content_key(site_id),
        content if content is not None else {"siteTitle": site_id.title(), "paymentTier": "FREE"},
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def sessions(store, hasher):
    return SessionManager(store, hasher=hasher)


@pytest.fixture
def seeded_store(store, hasher):
    """Template site plus tenants acme and beta"""
    template = template_content()
    template["subscriptionId"] = "sub_template"
    seed_site(store, hasher, "coastal-breeze", "template-password", content=template)
    for site_id, password in SITE_PASSWORDS.items():
        seed_site(store, hasher, site_id, password, admin_email=f"owner@{site_id}.test")
    return store


@pytest.fixture
def deployer():
    return FakeDeployer()


@pytest.fixture
def media_host():
    return FakeMediaHost()


@pytest.fixture
def app_settings():
    return Settings(
        auth=AuthSettings(platform_admin_token=PLATFORM_TOKEN, bcrypt_rounds=4),
        billing=BillingSettings(stripe_webhook_secret=WEBHOOK_SECRET),
    )


@pytest.fixture
def services(app_settings, seeded_store, hasher, deployer, media_host):
    from web.deps import build_services
    return build_services(
        app_settings,
        store=seeded_store,
        deployer=deployer,
        media_host=media_host,
        hasher=hasher,
    )


@pytest.fixture
def client(services):
    from web.deps import get_services
    from web.main import app

    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(services):
    """Independent clients (separate cookie jars) against the same services"""
    from web.deps import get_services
    from web.main import app

    app.dependency_overrides[get_services] = lambda: services
    clients = []

    def _make():
        c = TestClient(app)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()
    app.dependency_overrides.clear()


def login(client: TestClient, site_id: str, password: Optional[str] = None) -> str:
    """Log in through the API; returns the CSRF token"""
    res = client.post("/api/auth", json={"siteId": site_id, "password": password or SITE_PASSWORDS[site_id]})
    assert res.status_code == 200, res.text
    return res.json()["csrfToken"]


def sign_webhook(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Stripe-Signature header value for payload"""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"
