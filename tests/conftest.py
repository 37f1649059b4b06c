"""
Test configuration and fixtures
"""
import io
import json

import pytest

from app import create_app
from config import TestingConfig
from extensions import db
from models import Admin

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123456"

# 1x1 transparent PNG
PNG_HEADER = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06"
    b"\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01"
    b"\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig, UPLOAD_FOLDER=str(tmp_path / "uploads"))
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    admin = Admin(username="admin", email=ADMIN_EMAIL, role="superadmin", is_active_flag=True)
    admin.set_password(ADMIN_PASSWORD)
    db.session.add(admin)
    db.session.commit()
    return admin


@pytest.fixture
def auth_client(client, admin):
    """Test client carrying a valid admin session cookie"""
    response = client.post("/api/admin/auth", json={
        "action": "login",
        "email": ADMIN_EMAIL,
        "password": ADMIN_PASSWORD,
    })
    assert response.status_code == 200
    return client


@pytest.fixture
def upload_dir(app):
    return app.config["UPLOAD_FOLDER"]


def make_payload(**overrides):
    payload = {
        "fullName": "Jane Doe",
        "phoneNumber": "9876543210",
        "email": "jane@x.com",
        "collegeName": "ABC",
        "branch": "CS",
        "semester": "6",
        "batchType": "B.Tech",
        "registrationType": "Individual Project",
        "projectTitle": "Smart Irrigation System",
    }
    payload.update(overrides)
    return payload


def png_bytes(size=2 * 1000 * 1000):
    return PNG_HEADER + b"\x00" * max(0, size - len(PNG_HEADER))


def multipart(payload, file_bytes=None, filename="proof.png", content_type="image/png"):
    """Build a test-client ``data`` dict for a multipart submission."""
    data = {}
    for key, value in payload.items():
        if key == "groupMembers" and not isinstance(value, str):
            value = json.dumps(value)
        data[key] = value
    if file_bytes is not None:
        data["paymentScreenshot"] = (io.BytesIO(file_bytes), filename, content_type)
    return data


@pytest.fixture
def payload():
    return make_payload()


@pytest.fixture
def create_registration(app):
    """Insert a validated registration straight through the store"""
    from services import registration_store
    from services.validator import validate_registration

    def _create(**overrides):
        record = validate_registration(make_payload(**overrides), require_file=False)
        return registration_store.create(record)

    return _create
