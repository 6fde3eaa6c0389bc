"""
Pytest configuration and fixtures

Every test gets a fresh SQLite file database, so threads in the
concurrency tests see each other's commits the way separate requests would.
"""
import itertools
import threading
from datetime import datetime, timedelta

import pytest

from battlebeats import create_app
from battlebeats.extensions.extension import db
from battlebeats.models import User, UserRole
from battlebeats.services.storage import storage
from battlebeats.utils.jwt_utils import issue_session_token


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'battlebeats-test.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {
            'connect_args': {'check_same_thread': False, 'timeout': 30},
        },
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make_user(role=UserRole.listener, **fields):
        n = next(counter)
        fields.setdefault('email', f"user{n}@example.com")
        fields.setdefault('username', f"user{n}")
        user = User(role=role, **fields)
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_genre(app):
    def _make_genre(name="Jazz", max_trial_slots=None):
        return storage.create_genre(name, max_trial_slots)

    return _make_genre


@pytest.fixture
def make_battle(app):
    def _make_battle(creator, genre=None, title="Friday Night Battle", **fields):
        fields.setdefault('ends_at', datetime.utcnow() + timedelta(days=7))
        return storage.create_battle(
            title=title,
            created_by_id=creator.id,
            genre_id=genre.id if genre else None,
            **fields
        )

    return _make_battle


@pytest.fixture
def make_track(app):
    def _make_track(artist, battle, title="Night Drive"):
        return storage.create_track(title=title, artist_id=artist.id, battle_id=battle.id)

    return _make_track


@pytest.fixture
def auth_headers(app):
    """Open a real server-side session for `user` and return a bearer header"""
    def _auth_headers(user):
        session = storage.create_session(user.id, app.config['SESSION_TTL'])
        token = issue_session_token(user, session)
        return {'Authorization': f'Bearer {token}'}

    return _auth_headers


@pytest.fixture
def run_concurrently(app):
    """
    Fire several requests at once, each from its own thread and test client,
    and return the responses in submission order.
    """
    def _run(*calls):
        barrier = threading.Barrier(len(calls))
        responses = [None] * len(calls)
        errors = []

        def worker(index, method, url, kwargs):
            try:
                thread_client = app.test_client()
                barrier.wait(timeout=10)
                responses[index] = getattr(thread_client, method)(url, **kwargs)
            except Exception as e:  # surfaced to the test below
                errors.append(e)

        threads = [
            threading.Thread(target=worker, args=(index, method, url, kwargs))
            for index, (method, url, kwargs) in enumerate(calls)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert not errors, errors
        db.session.expire_all()
        return responses

    return _run
