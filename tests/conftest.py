import pytest
from typing import Dict, Generator, List, Tuple

import httpx
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from student_portal.config.settings import settings
from student_portal.db.document_store import DocumentStore
from student_portal.db.models import Base, User
from student_portal.db.session import get_sync_session
from student_portal.main import app
from student_portal.providers.postal_lookup_provider import (
    PostalLookupProvider,
    get_postal_lookup_provider,
)
from student_portal.schemas.student_schemas import field_alias
from student_portal.services.student_repository import StudentRepository
from student_portal.utils.auth import AuthUtils
from student_portal.utils.notifications import Notifier


# Test database setup
TEST_DATABASE_URL = "sqlite://"

ADMIN_EMAIL = "admin@school.test"
ADMIN_PASSWORD = "correct-horse"

POSTAL_LOOKUP_URL = "https://postal.test/pincode"


def post_office_response(district: str, state: str) -> list:
    """Body the PIN code API returns for a known code"""
    return [
        {
            "Message": "Number of pincode(s) found:1",
            "Status": "Success",
            "PostOffice": [
                {"Name": "Head Office", "District": district, "State": state},
                {"Name": "Branch Office", "District": "Elsewhere", "State": "Nowhere"},
            ],
        }
    ]


NOT_FOUND_RESPONSE = [{"Message": "No records found", "Status": "Error", "PostOffice": None}]

KNOWN_PIN_CODES: Dict[str, list] = {
    "560001": post_office_response("Bangalore", "Karnataka"),
    "110001": post_office_response("Central Delhi", "Delhi"),
    "400001": post_office_response("Mumbai", "Maharashtra"),
}


class PostalApiStub:
    """httpx handler standing in for the public PIN code API"""

    def __init__(self):
        self.responses: Dict[str, Tuple[int, object]] = {
            pin: (200, body) for pin, body in KNOWN_PIN_CODES.items()
        }
        self.unreachable = False
        self.calls: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        pin = request.url.path.rsplit("/", 1)[-1]
        self.calls.append(pin)
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)

        status_code, body = self.responses.get(pin, (200, NOT_FOUND_RESPONSE))
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)


@pytest.fixture
def test_engine():
    """Create test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a database session for each test."""
    session_maker = sessionmaker(bind=test_engine, class_=Session, expire_on_commit=False)
    session = session_maker()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def document_store(db_session: Session) -> DocumentStore:
    return DocumentStore(db_session, settings.STUDENTS_COLLECTION)


@pytest.fixture
def repository(document_store: DocumentStore) -> StudentRepository:
    return StudentRepository(document_store)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier(auto_close_seconds=3)


@pytest.fixture
def postal_api() -> PostalApiStub:
    return PostalApiStub()


@pytest.fixture
def postal_lookup(postal_api: PostalApiStub) -> PostalLookupProvider:
    return PostalLookupProvider(
        base_url=POSTAL_LOOKUP_URL, timeout=1.0, transport=httpx.MockTransport(postal_api)
    )


@pytest.fixture
def admin_user(db_session: Session) -> User:
    user = User(
        email=ADMIN_EMAIL,
        display_name="Admin",
        password_hash=AuthUtils.hash_password(ADMIN_PASSWORD),
        is_active=True,
        access_token_version=0,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def client(db_session: Session, postal_lookup: PostalLookupProvider):
    """HTTP client against the app, without running startup seeding."""
    app.dependency_overrides[get_sync_session] = lambda: db_session
    app.dependency_overrides[get_postal_lookup_provider] = lambda: postal_lookup
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client: TestClient, admin_user: User) -> Dict[str, str]:
    response = client.post(
        f"{settings.API_PREFIX}/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    # Drop the cookie so tests choose how they authenticate
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['data']['accessToken']}"}


def student_values(**overrides) -> Dict[str, str]:
    """A complete, valid set of snake_case form values"""
    values = {
        "student_id": "S-001",
        "first_name": "Asha",
        "last_name": "Rao",
        "email": "asha.rao@example.com",
        "phone_number": "9876543210",
        "address": "12 MG Road",
        "zip": "560001",
        "city": "Bangalore",
        "state": "Karnataka",
        "class_name": "10",
        "section": "B",
        "roll_number": "7",
    }
    values.update(overrides)
    return values


def student_payload(**overrides) -> Dict[str, str]:
    """The same values keyed the way the HTTP API expects"""
    return {field_alias(name): value for name, value in student_values(**overrides).items()}
