"""
Pytest fixtures for SwiftPOS backend tests.

Provides an in-memory app per test, the loaded store state, a test client
with a logged-in admin, and a virtual clock for the backup scheduler.
"""

import pytest

from swiftpos import create_app
from swiftpos.extensions import db
from swiftpos.services.backup_service import get_scheduler
from swiftpos.services.state_service import get_state


class FakeTimer:
    """threading.Timer stand-in driven by FakeTimers.advance()."""

    def __init__(self, clock, interval, function, args=None, kwargs=None):
        self.clock = clock
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False
        self.due = None

    def start(self):
        self.started = True
        self.due = self.clock.now + self.interval

    def cancel(self):
        self.cancelled = True

    @property
    def active(self):
        return self.started and not self.cancelled and not self.fired


class FakeTimers:
    """Timer factory with a virtual clock (seconds since the test started)."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = FakeTimer(self, interval, function, args, kwargs)
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        return [t for t in self.timers if t.active]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self.active if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            timer.fired = True
            timer.function(*timer.args, **timer.kwargs)
        self.now = target


class RecordingTransport:
    """Sync transport that records each call and the virtual time it ran at."""

    def __init__(self, timers=None, scheduler=None):
        self.timers = timers
        self.scheduler = scheduler
        self.calls = []
        self.syncing_seen = []

    def __call__(self, snapshot, duration):
        self.calls.append({
            "at": self.timers.now if self.timers else None,
            "duration": duration,
            "snapshot": snapshot,
        })
        if self.scheduler is not None:
            self.syncing_seen.append(self.scheduler.is_syncing)


@pytest.fixture()
def timers():
    return FakeTimers()


@pytest.fixture()
def app(timers):
    """Create application for testing (fresh in-memory database per test)."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'BACKUP_DEBOUNCE_SECONDS': 5.0,
        'AUTO_SYNC_SECONDS': 2.0,
        'MANUAL_SYNC_SECONDS': 1.5,
    })

    with app.app_context():
        db.create_all()
        scheduler = get_scheduler()
        scheduler.timer_factory = timers
        scheduler.transport = RecordingTransport(timers, scheduler)
        yield app
        scheduler.shutdown()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def state(app):
    """The loaded store state (seed data)."""
    return get_state()


@pytest.fixture()
def scheduler(app, state):
    return get_scheduler()


@pytest.fixture()
def transport(scheduler):
    return scheduler.transport


@pytest.fixture()
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture()
def admin_client(client, state):
    """Test client with the seed admin logged in."""
    response = client.post('/api/auth/login', json={
        'username': 'admin',
        'password': 'password',
    })
    assert response.status_code == 200
    return client
