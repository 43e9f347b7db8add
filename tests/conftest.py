import os
import pathlib
import sys
from io import BytesIO

import pytest
from flask import session
from PyPDF2 import PdfWriter

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from certificados.app import create_app, db
from certificados.models import ContactIndexEntry, User
from certificados.shared.csrf import make_token

TEST_NONCE = "test-session-nonce"


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("SITE_ROOT", str(tmp_path))
    monkeypatch.setenv("CERTIFICATES_DIR", str(tmp_path / "certificados-gcp"))
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("FLASK_SKIP_SEED", "1")
    for name in ("FLUENTCRM_API_URL", "FLUENTCRM_API_USERNAME", "FLUENTCRM_API_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    application = create_app()
    application.config["TESTING"] = True
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def token_for(app, client):
    """Return a signed token for ``scope`` bound to the test client's session."""

    with client.session_transaction() as sess:
        sess["_gcp_nonce"] = TEST_NONCE

    def _make(scope: str) -> str:
        with app.test_request_context():
            session["_gcp_nonce"] = TEST_NONCE
            return make_token(scope)

    return _make


@pytest.fixture
def admin_user(app):
    user = User(email="admin@example.com", full_name="Admin", is_admin=True)
    user.set_password("pw")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_client(client, admin_user, token_for):
    with client.session_transaction() as sess:
        sess["user_id"] = admin_user.id
    return client


@pytest.fixture
def pdf_stub(monkeypatch):
    """Replace the HTML-to-PDF engine with a blank one-page PDF."""
    calls = []

    def _render(html: str) -> bytes:
        calls.append(html)
        writer = PdfWriter()
        writer.add_blank_page(width=595, height=842)
        buf = BytesIO()
        writer.write(buf)
        return buf.getvalue()

    monkeypatch.setattr("certificados.services.pdf.render_pdf_bytes", _render)
    return calls


def index_contact(subscriber_id, cedula, email="", first_name="", last_name=""):
    entry = ContactIndexEntry(
        subscriber_id=subscriber_id,
        key="cedula",
        value=cedula,
        email=email,
        first_name=first_name,
        last_name=last_name,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


class FakeSession:
    """Stands in for ``requests.Session``; routes GETs by URL suffix."""

    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.calls = []
        self.auth = None

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                if callable(response):
                    return response(params or {})
                return response
        return FakeResponse(404, text="not found")
