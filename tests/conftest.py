import pytest
from fastapi.testclient import TestClient

from invoicer.main import app
from invoicer.core.audit import audit_repo
from invoicer.core.auth import sessions
from invoicer.core.config import settings
from invoicer.core.shortcuts import Scheduler
from invoicer.db.memory import invoice_repo, logo_storage, preferences_repo, settings_repo

@pytest.fixture(autouse=True)
def clean_state(tmp_path, monkeypatch):
    """Every test starts with empty stores and writes logos to a temp dir."""
    invoice_repo.clear()
    settings_repo.clear()
    preferences_repo.clear()
    sessions.clear()
    audit_repo.clear()
    monkeypatch.setattr(logo_storage, "directory", str(tmp_path / "logos"))
    yield

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def auth_client(client):
    response = client.post(
        "/login",
        data={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client

@pytest.fixture
def sample_invoice():
    return {
        "invoice_number": "INV-001",
        "issue_date": "2026-02-20",
        "due_date": "2026-03-20",
        "tax_rate": 21,
        "client_name": "Acme Corp",
        "client_address": "123 Main St",
        "client_city": "Amsterdam",
        "client_postal_code": "1000 AA",
        "client_country": "Netherlands",
        "client_email": "acme@example.com",
        "client_phone": "+31 20 555 0100",
        "client_vat_number": "NL123456789B01",
        "line_items": [
            {"description": "Web Development", "quantity": 10, "unit_price": 100, "sort_order": 0},
            {"description": "Design", "quantity": 5, "unit_price": 80, "sort_order": 1},
        ],
    }

class ManualTimer:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

class ManualScheduler(Scheduler):
    """Timers fire only when the test advances the clock."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback):
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds):
        self.now += seconds
        for timer in list(self.timers):
            if not timer.cancelled and timer.due <= self.now:
                self.timers.remove(timer)
                timer.callback()

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled]

@pytest.fixture
def scheduler():
    return ManualScheduler()
