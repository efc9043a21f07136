import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from catalog_auth.adapters.configuration.config import Settings
from catalog_auth.adapters.outbound.persistence.database import Database
from catalog_auth.adapters.outbound.security.admin_override import AdminOverride
from catalog_auth.adapters.outbound.security.key_manager import KeyManager, generate_private_key_pem
from catalog_auth.application.use_cases import (
    AsyncApplicationService,
    AsyncClientService,
    AsyncScopeResolver,
    AsyncTokenService,
)
from catalog_auth.container import ServiceContainer
from catalog_auth.main import create_app

SQLITE_URL = "sqlite+aiosqlite:///:memory:"
SERVICE_AUDIENCE = "https://tools.local/token-service"
ISSUER = "https://token.example"
KEY_ID = "test-key-1"
ADMIN_CLIENT_ID = "bootstrap-admin"
ADMIN_CLIENT_SECRET = "bootstrap-secret"
MANAGEMENT_CLIENT_ID = "ops"
MANAGEMENT_CLIENT_SECRET = "ops-secret"
ADMIN_TOKEN_SCOPES = "admin.read admin.write client.read client.write"


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    return generate_private_key_pem("RS256")


@pytest.fixture
def settings(private_key_pem) -> Settings:
    return Settings(
        _env_file=None,
        ENVIRONMENT="testing",
        DATABASE_URL=SQLITE_URL,
        TOKEN_SERVICE_PRIVATE_KEY=private_key_pem,
        TOKEN_SERVICE_PRIVATE_KEY_FILE=None,
        TOKEN_SERVICE_KEY_ID=KEY_ID,
        TOKEN_SIGNING_ALGORITHM="RS256",
        TOKEN_ISSUER=ISSUER,
        TOKEN_SERVICE_AUD=SERVICE_AUDIENCE,
        TOKEN_SERVICE_JWKS_URL=None,
        ADMIN_CLIENT_ID=ADMIN_CLIENT_ID,
        ADMIN_CLIENT_SECRET=ADMIN_CLIENT_SECRET,
        MANAGEMENT_CLIENT_ID=MANAGEMENT_CLIENT_ID,
        MANAGEMENT_CLIENT_SECRET=MANAGEMENT_CLIENT_SECRET,
        TOKEN_SERVICE_URL=None,
        CLIENT_ID=None,
        CLIENT_SECRET=None,
    )


@pytest.fixture
def key_manager(settings) -> KeyManager:
    return KeyManager.from_settings(settings)


# ─── Database and services ───────────────────────────────────────────────────

@pytest_asyncio.fixture
async def database():
    db = Database(SQLITE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def admin_override(settings) -> AdminOverride:
    return AdminOverride.from_settings(settings)


@pytest.fixture
def client_service(db_session, admin_override) -> AsyncClientService:
    return AsyncClientService(db_session, admin_override=admin_override)


@pytest.fixture
def application_service(db_session) -> AsyncApplicationService:
    return AsyncApplicationService(db_session)


@pytest.fixture
def scope_resolver(db_session) -> AsyncScopeResolver:
    return AsyncScopeResolver(db_session)


@pytest.fixture
def token_service(client_service, scope_resolver, key_manager) -> AsyncTokenService:
    return AsyncTokenService(client_service, scope_resolver, key_manager, issuer=ISSUER)


# ─── HTTP ────────────────────────────────────────────────────────────────────

def build_app(settings: Settings, **overrides):
    container = ServiceContainer.build(settings, database=Database(settings.DATABASE_URL), **overrides)
    return create_app(container=container)


@pytest.fixture
def client(settings):
    with TestClient(build_app(settings)) as test_client:
        yield test_client


def request_token(http, client_id, client_secret, audience=SERVICE_AUDIENCE, scope=None, grant_type="client_credentials"):
    data = {"grant_type": grant_type, "client_id": client_id, "client_secret": client_secret, "audience": audience}
    if scope is not None:
        data["scope"] = scope
    return http.post("/token", data=data)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client) -> dict:
    response = request_token(client, ADMIN_CLIENT_ID, ADMIN_CLIENT_SECRET, scope=ADMIN_TOKEN_SCOPES)
    assert response.status_code == 200, response.text
    return bearer(response.json()["access_token"])
