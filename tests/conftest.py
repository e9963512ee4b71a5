"""Shared fixtures: in-memory database, seeded catalog and an API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DEBUG", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import create_access_token
from app.database import enable_foreign_keys, get_db, init_db
from app.main import app
from app.models import Content, ContentType, Episode, Genre, Profile, Season, User
from app.services.watch_progress_service import Viewer


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_foreign_keys(engine)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def catalog(db):
    """
    Two users with profiles, a movie and two shows.

    - u1 (active profile p1, second profile p1b)
    - u2 (active profile p2)
    - u3 (no active profile)
    - m1: 2 minute movie
    - s1: show, season 1 with episodes e5 (#5) and e6 (#6), 40 minutes each
    - s2: show, season 1 with episode e99 (#1) and no catalog duration
    """
    drama = Genre(id="g1", name="Drama")

    db.add_all([
        User(id="u1", email="one@example.com", name="One", active_profile_id="p1"),
        User(id="u2", email="two@example.com", name="Two", active_profile_id="p2"),
        User(id="u3", email="three@example.com", name="Three"),
    ])
    db.add_all([
        Profile(id="p1", user_id="u1", name="Main"),
        Profile(id="p1b", user_id="u1", name="Kids", is_kids=True),
        Profile(id="p2", user_id="u2", name="Other"),
    ])

    db.add(Content(id="m1", title="Heist", type=ContentType.MOVIE, duration=2, genres=[drama]))

    show = Content(id="s1", title="Harbour Lights", type=ContentType.TV_SHOW, genres=[drama])
    season = Season(id="s1-1", season_number=1, title="Season 1")
    season.episodes = [
        Episode(id="e5", episode_number=5, title="The Tide", duration=40),
        Episode(id="e6", episode_number=6, title="Undertow", duration=40),
    ]
    show.seasons = [season]
    db.add(show)

    other_show = Content(id="s2", title="Dry Land", type=ContentType.TV_SHOW)
    other_season = Season(id="s2-1", season_number=1)
    other_season.episodes = [Episode(id="e99", episode_number=1, title="Pilot")]
    other_show.seasons = [other_season]
    db.add(other_show)

    db.commit()
    return db


@pytest.fixture
def viewer() -> Viewer:
    return Viewer(user_id="u1", profile_id="p1")


@pytest.fixture
def client(session_factory, catalog):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
