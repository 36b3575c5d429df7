import os

# Must be set before the app settings are imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ.setdefault("FRONTEND_URL", "https://twofold.test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

from app.api.deps import get_media_gateway, get_session
from app.core.db import build_engine
from app.core.errors import MediaGatewayError
from app.core.security import create_access_token
from app.main import app
from app.models.couple import Couple, CoupleStatus
from app.models.user import User


class FakeMediaGateway:
    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail = False

    def upload_image(self, data, public_id, content_type="image/jpeg"):
        if self.fail:
            raise MediaGatewayError("upload")
        self.uploads.append((public_id, data, content_type))
        return f"https://cdn.test/{public_id}.jpg"

    def delete_image(self, public_id):
        if self.fail:
            raise MediaGatewayError("delete")
        self.deleted.append(public_id)


@pytest.fixture(name="engine")
def engine_fixture():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="media_gateway")
def media_gateway_fixture():
    return FakeMediaGateway()


@pytest.fixture(name="client")
def client_fixture(session, media_gateway):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_media_gateway] = lambda: media_gateway
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session):
    def _create_user(email="test@example.com", **fields):
        user = User(email=email, **fields)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _create_user


@pytest.fixture
def create_couple(session):
    """Insert a couple directly, linking its members."""
    def _create_couple(creator, code="ABC123", partner=None, relationship_type="dating"):
        couple = Couple(
            invite_code=code,
            creator_id=creator.id,
            partner_id=partner.id if partner else None,
            status=(CoupleStatus.FULL if partner else CoupleStatus.WAITING).value,
            relationship_type=relationship_type,
        )
        session.add(couple)
        session.commit()
        session.refresh(couple)
        creator.couple_id = couple.id
        session.add(creator)
        if partner:
            partner.couple_id = couple.id
            session.add(partner)
        session.commit()
        session.refresh(couple)
        return couple
    return _create_couple


def get_auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def auth_headers():
    return get_auth_headers
