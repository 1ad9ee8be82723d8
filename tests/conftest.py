from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Any, Generator, List, Optional

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fleetlog import models
from fleetlog.auth import SessionManager
from fleetlog.main import app, attach_services
from fleetlog.recorder import WorkLogRecorder
from fleetlog.remote import RemoteMirror
from fleetlog.schemas import WorkLog
from fleetlog.storage import LocalStorage
from fleetlog.store import EntityStore

PHOTO = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQAAAQABAAD/2wBDAAgGBgcGBQgHBwcJCQgKDBQNDAsLDBkSEw8U"
START = dt.datetime(2024, 5, 6, 7, 30, tzinfo=dt.timezone.utc)

_INVALID_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        if self._payload is _INVALID_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeHttp:
    """Stands in for ``requests.Session`` and records every call."""

    def __init__(self) -> None:
        self.posts: List[dict] = []
        self.gets: List[dict] = []
        self.post_response = FakeResponse(200, {"status": "ok"})
        self.get_response = FakeResponse(200, {})
        self.error: Optional[Exception] = None

    def post(self, url: str, json: Any = None, timeout: Optional[float] = None) -> FakeResponse:
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.post_response

    def get(self, url: str, params: Any = None, timeout: Optional[float] = None) -> FakeResponse:
        self.gets.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.get_response

    def respond_with(self, payload: Any, status_code: int = 200) -> None:
        self.get_response = FakeResponse(status_code, payload)

    def respond_with_invalid_json(self) -> None:
        self.get_response = FakeResponse(200, _INVALID_JSON)

    def fail_with(self, message: str = "connection refused") -> None:
        self.error = requests.ConnectionError(message)


class TickingClock:
    """Returns a new instant, one second later, on every call."""

    def __init__(self, start: dt.datetime = START) -> None:
        self.current = start

    def __call__(self) -> dt.datetime:
        value = self.current
        self.current = self.current + dt.timedelta(seconds=1)
        return value


def make_log(**overrides: Any) -> WorkLog:
    values = {
        "id": "1714980600000",
        "operator_id": "u2",
        "operator_name": "João da Silva",
        "tractor_id": "t1",
        "tractor_name": "Trator 01",
        "service_id": "aragem",
        "service_name": "Aragem",
        "service_description": "Talhão norte",
        "date": "2024-05-06",
        "start_horimeter": 1250.5,
        "end_horimeter": 1254.5,
        "start_horimeter_photo": PHOTO,
        "end_horimeter_photo": PHOTO,
        "fuel_liters": 40.0,
        "notes": "",
        "total_hours": 4.0,
        "created_at": "2024-05-06T07:30:00+00:00",
    }
    values.update(overrides)
    return WorkLog(**values)


@pytest.fixture()
def session_factory(tmp_path: Path) -> Generator[sessionmaker, None, None]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'fleetlog-test.db'}",
        connect_args={"check_same_thread": False},
        future=True,
    )
    models.Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture()
def storage(session_factory: sessionmaker) -> LocalStorage:
    return LocalStorage(session_factory)


@pytest.fixture()
def store(storage: LocalStorage) -> EntityStore:
    return EntityStore(storage)


@pytest.fixture()
def sessions(store: EntityStore) -> SessionManager:
    return SessionManager(store)


@pytest.fixture()
def fake_http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def mirror(store: EntityStore, fake_http: FakeHttp, clock: TickingClock) -> RemoteMirror:
    return RemoteMirror(store, http=fake_http, clock=clock)  # type: ignore[arg-type]


@pytest.fixture()
def recorder(
    store: EntityStore,
    sessions: SessionManager,
    mirror: RemoteMirror,
    clock: TickingClock,
) -> WorkLogRecorder:
    return WorkLogRecorder(store, sessions, mirror, clock=clock)


@pytest.fixture()
def client(session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    names = ("store", "sessions", "mirror", "recorder")
    previous = {name: getattr(app.state, name) for name in names}
    attach_services(app, session_factory)
    with TestClient(app) as c:
        yield c
    for name, value in previous.items():
        setattr(app.state, name, value)
