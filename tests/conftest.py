import copy

import pytest

from app.engines.template_codec import deserialize
from app.settings import settings

_STYLE = {"fontFamily": "Inter", "fontSize": 16, "fontWeight": "normal", "color": "#374151", "textAlign": "left"}

VALID_DOCUMENT = {
    "id": "test-template-1",
    "name": "Test Template",
    "description": "Test template for round-trip",
    "category": "modern",
    "orientation": "landscape",
    "status": "draft",
    "layout": {
        "recipientName": {"x": 15, "y": 65, "width": 40, "height": 8},
        "courseName": {"x": 15, "y": 75, "width": 50, "height": 6},
        "issueDate": {"x": 15, "y": 82, "width": 20, "height": 4},
        "certificateId": {"x": 15, "y": 88, "width": 20, "height": 4},
        "institution": {"x": 20, "y": 10, "width": 60, "height": 8},
        "signature": {"x": 60, "y": 85, "width": 25, "height": 8},
        "qrCode": {"x": 75, "y": 70, "width": 15, "height": 15},
    },
    "styling": {
        "recipientName": {**_STYLE, "fontSize": 32, "fontWeight": "bold", "color": "#0891b2"},
        "courseName": dict(_STYLE),
        "issueDate": {**_STYLE, "fontSize": 12},
        "certificateId": {**_STYLE, "fontSize": 10, "textTransform": "uppercase"},
        "institution": {**_STYLE, "fontSize": 20, "textAlign": "center"},
        "signatureName": {**_STYLE, "fontWeight": "bold", "textAlign": "center"},
        "signatureTitle": {**_STYLE, "fontSize": 10, "fontWeight": "light", "textAlign": "center"},
    },
    "variables": [
        "{{recipientName}}",
        "{{courseName}}",
        "{{issueDate}}",
        "{{certificateId}}",
        "{{institution}}",
    ],
    "createdAt": "2024-01-01T00:00:00Z",
    "updatedAt": "2024-01-01T00:00:00Z",
}


@pytest.fixture
def template_doc():
    return copy.deepcopy(VALID_DOCUMENT)


@pytest.fixture
def create_payload(template_doc):
    for key in ("id", "createdAt", "updatedAt"):
        template_doc.pop(key)
    return template_doc


@pytest.fixture
def template(template_doc):
    result = deserialize(template_doc)
    assert result.ok, result.errors
    return result.value


@pytest.fixture
def tmp_db(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "templates.db"))
    from app.utils.db import init_db

    init_db()
    return tmp_path / "templates.db"


@pytest.fixture
def client(tmp_db, monkeypatch):
    from fastapi.testclient import TestClient

    from app.main import app

    monkeypatch.setattr(settings, "SEED_DEFAULT_TEMPLATES", False)
    monkeypatch.setattr(settings, "BACKGROUNDS_DIR", str(tmp_db.parent / "backgrounds"))
    with TestClient(app) as c:
        yield c
