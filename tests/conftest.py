"""Shared test fixtures for the materials test suite.

Postgres-backed collaborators are replaced by in-memory fakes with the same
methods, Valkey by fakeredis, and the email gateway and blob store by mocks.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from unittest.mock import Mock, patch
from uuid import UUID, uuid4

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from auth.types import Account, Role, TokenClaims
from core.models import Material, MaterialFilter
from utils.timezone import now_utc
from utils.user_context import clear_current_identity, identity_context


# =============================================================================
# TEST CONSTANTS
# =============================================================================

TEST_TOKEN_SECRET = "test-token-secret-that-is-at-least-32-bytes-long"

USER_EMAIL = "student@uniport.edu.ng"
ADMIN_EMAIL = "registrar@uniport.edu.ng"

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"
CDN_BASE = "https://cdn.test.uniport.edu.ng"


# =============================================================================
# IN-MEMORY DATABASES
# =============================================================================


class FakeAccountDatabase:
    """Dict-backed stand-in for auth.database.AccountDatabase."""

    def __init__(self):
        self.accounts: dict[UUID, Account] = {}
        self.last_login_calls: list[UUID] = []

    def get_account_by_email(self, email: str) -> Account | None:
        email = email.lower()
        return next((a for a in self.accounts.values() if a.email == email), None)

    def create_account(self, email: str, role: Role = Role.USER) -> Account:
        if self.get_account_by_email(email) is not None:
            raise ValueError(f"duplicate email {email}")
        account = Account(id=uuid4(), email=email.lower(), role=role, created_at=now_utc())
        self.accounts[account.id] = account
        return account

    def upsert_account(self, email: str, role: Role) -> Account:
        existing = self.get_account_by_email(email)
        if existing is None:
            return self.create_account(email, role)
        updated = existing.model_copy(update={"role": role})
        self.accounts[updated.id] = updated
        return updated

    def update_last_login(self, account_id: UUID) -> None:
        self.last_login_calls.append(account_id)
        account = self.accounts[account_id]
        self.accounts[account_id] = account.model_copy(update={"last_login_at": now_utc()})


@dataclass
class FakeMaterialDatabase:
    """Dict-backed stand-in for core.database.MaterialDatabase."""

    rows: dict[UUID, Material] = field(default_factory=dict)
    _order: list[UUID] = field(default_factory=list)

    def insert(self, level, course_code, course_title, description, pdf_url, storage_key, uploaded_by):
        now = now_utc()
        material = Material(
            id=uuid4(),
            level=level,
            course_code=course_code,
            course_title=course_title,
            description=description,
            pdf_url=pdf_url,
            storage_key=storage_key,
            approved=False,
            uploaded_by=uploaded_by,
            created_at=now,
            updated_at=now,
        )
        self.rows[material.id] = material
        self._order.append(material.id)
        return material

    def get_by_id(self, material_id):
        return self.rows.get(material_id)

    def list_matching(self, query: MaterialFilter):
        matches = []
        for material_id in reversed(self._order):
            material = self.rows.get(material_id)
            if material is None:
                continue
            if query.approved_only and not material.approved:
                continue
            if query.level and material.level != query.level:
                continue
            if query.course_code and material.course_code != query.course_code:
                continue
            matches.append(material)
        return matches

    def update(self, material_id, fields):
        current = self.rows.get(material_id)
        if current is None:
            return None
        updated = current.model_copy(update={**fields, "updated_at": now_utc()})
        self.rows[material_id] = updated
        return updated

    def delete(self, material_id):
        return self.rows.pop(material_id, None) is not None


# =============================================================================
# IDENTITY FIXTURES
# =============================================================================


def make_claims(account: Account) -> TokenClaims:
    now = now_utc()
    return TokenClaims(
        account_id=account.id,
        email=account.email,
        role=account.role,
        issued_at=now,
        expires_at=now + timedelta(days=10),
    )


@pytest.fixture(autouse=True)
def reset_identity():
    """Ensure clean identity context before and after each test."""
    clear_current_identity()
    yield
    clear_current_identity()


@pytest.fixture
def account_db():
    return FakeAccountDatabase()


@pytest.fixture
def material_db():
    return FakeMaterialDatabase()


@pytest.fixture
def user_account(account_db) -> Account:
    """A registered regular account."""
    return account_db.create_account(USER_EMAIL)


@pytest.fixture
def admin_account(account_db) -> Account:
    """A registered admin account."""
    return account_db.upsert_account(ADMIN_EMAIL, Role.ADMIN)


@pytest.fixture
def as_user(user_account):
    """Run the test as the regular account."""
    with identity_context(make_claims(user_account)):
        yield user_account


@pytest.fixture
def as_admin(admin_account):
    """Run the test as the admin account."""
    with identity_context(make_claims(admin_account)):
        yield admin_account


# =============================================================================
# INFRASTRUCTURE FIXTURES
# =============================================================================


@pytest.fixture
def fake_redis():
    """Empty fakeredis connection with string responses."""
    import fakeredis

    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    return client


@pytest.fixture
def valkey(fake_redis):
    """ValkeyClient talking to fakeredis."""
    from clients.valkey_client import ValkeyClient

    with patch("redis.from_url", return_value=fake_redis):
        client = ValkeyClient("redis://localhost:6379/0")
    yield client


@pytest.fixture
def mock_email_client():
    """Mock email client - no actual emails sent in tests."""
    from clients.email_client import EmailGatewayClient

    mock = Mock(spec=EmailGatewayClient)
    mock.send_otp.return_value = None
    return mock


@pytest.fixture
def mock_blob_store():
    """Mock blob store returning CDN URLs for stored keys."""
    from clients.storage_client import BlobStore

    mock = Mock(spec=BlobStore)
    mock.put.side_effect = lambda key, stream, content_type: f"{CDN_BASE}/{key}"
    mock.url_for.side_effect = lambda key: f"{CDN_BASE}/{key}"
    return mock


@pytest.fixture
def mock_security_logger():
    from auth.security_logger import SecurityLogger

    return Mock(spec=SecurityLogger)


@pytest.fixture
def mock_audit():
    from core.audit import AuditLogger

    return Mock(spec=AuditLogger)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def auth_config():
    from auth.config import AuthConfig

    return AuthConfig()


@pytest.fixture
def token_issuer(auth_config):
    from auth.tokens import TokenIssuer

    return TokenIssuer(TEST_TOKEN_SECRET, auth_config)


@pytest.fixture
def otp_ledger(valkey):
    from auth.otp_ledger import OTPLedger

    return OTPLedger(valkey)


@pytest.fixture
def auth_service(auth_config, account_db, otp_ledger, token_issuer, mock_email_client, mock_security_logger):
    """AuthService with fake accounts, fakeredis ledger and mocked email."""
    from auth.service import AuthService

    return AuthService(
        config=auth_config,
        account_db=account_db,
        otp_ledger=otp_ledger,
        token_issuer=token_issuer,
        email_client=mock_email_client,
        security_logger=mock_security_logger,
    )


@pytest.fixture
def material_service(material_db, mock_blob_store, mock_audit):
    from core.services.material_service import MaterialService

    return MaterialService(material_db, mock_blob_store, mock_audit)


# =============================================================================
# HTTP FIXTURES
# =============================================================================


@pytest.fixture
def app(auth_service, material_service, token_issuer):
    """Fully wired application over the fakes above."""
    from main import Services, create_app

    return create_app(Services(
        auth=auth_service,
        materials=material_service,
        token_issuer=token_issuer,
    ))


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def user_headers(user_account, token_issuer):
    return {"Authorization": f"Bearer {token_issuer.issue(user_account)}"}


@pytest.fixture
def admin_headers(admin_account, token_issuer):
    return {"Authorization": f"Bearer {token_issuer.issue(admin_account)}"}


@pytest.fixture
def pdf_file():
    """Multipart file tuple for an upload."""
    return {"material": ("lecture-notes.pdf", PDF_BYTES, "application/pdf")}
