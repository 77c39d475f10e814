# tests/conftest.py

import json
from unittest.mock import MagicMock, patch

import pytest

from app import app as flask_app
from config import Config
from storage.db import create_db_engine, create_session_factory, init_db, session_scope
from storage.models import Committee
from storage.submissions import SubmissionStore


class FakeMailchimp:
    """Stands in for requests.request against the Mailchimp API.

    Records every call and answers member upserts, tag listings and tag
    updates. Set ``tags`` to the member's current tags, or ``fail`` to a
    (method, status, body) tuple to make that method fail.
    """

    def __init__(self):
        self.calls = []
        self.tags = []
        self.fail = None

    @staticmethod
    def _response(status, body=None):
        response = MagicMock()
        response.status_code = status
        response.ok = 200 <= status < 300
        response.text = json.dumps(body) if body is not None else ""
        return response

    def __call__(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})

        if self.fail and self.fail[0] == method:
            return self._response(self.fail[1], self.fail[2])

        if method == "PUT":
            return self._response(200, {"id": url.rsplit("/", 1)[-1], "status": "subscribed"})
        if method == "GET" and url.endswith("/tags"):
            return self._response(200, {"tags": self.tags, "total_items": len(self.tags)})
        if method == "POST" and url.endswith("/tags"):
            return self._response(204)
        return self._response(404, {"title": "Resource Not Found", "detail": "Unexpected call"})

    def calls_for(self, method):
        return [c for c in self.calls if c["method"] == method]


@pytest.fixture
def mailchimp_config(monkeypatch):
    """Configure Mailchimp settings without touching the environment"""
    monkeypatch.setattr(Config, "MAILCHIMP_DC", "us21")
    monkeypatch.setattr(Config, "MAILCHIMP_API_KEY", "test-key-us21")
    monkeypatch.setattr(Config, "MAILCHIMP_AUDIENCE_ID", "list123")
    monkeypatch.setattr(Config, "WEBHOOK_SECRET", "")
    return Config


@pytest.fixture
def fake_mailchimp(mailchimp_config):
    """Patch HTTP calls made by the Mailchimp client"""
    fake = FakeMailchimp()
    with patch("clients.mailchimp.requests.request", side_effect=fake):
        yield fake


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite database file per test"""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'roster-test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return SubmissionStore(session_factory)


@pytest.fixture
def committees(session_factory):
    """Seed committees; returns {slug: id as str}"""
    rows = [
        Committee(slug="communications", name="Communications", sort_order=2),
        Committee(slug="events", name="Events & Outreach", sort_order=1),
        Committee(slug="fundraising", name="Fundraising", sort_order=0, is_active=False),
    ]
    with session_scope(session_factory) as session:
        session.add_all(rows)
        session.flush()
        return {c.slug: str(c.id) for c in rows}


@pytest.fixture
def client(store, monkeypatch):
    """Flask test client wired to the test database"""
    flask_app.config.update({"TESTING": True})
    monkeypatch.setattr("app.get_submission_store", lambda: store)
    return flask_app.test_client()


@pytest.fixture
def runner(store, monkeypatch):
    monkeypatch.setattr("app.get_submission_store", lambda: store)
    return flask_app.test_cli_runner()
