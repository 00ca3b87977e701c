import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import AppConfig
from app.database import init_db
from app.main import create_app


class RecordingSink:
    enabled = True

    def __init__(self):
        self.events = []

    async def send(self, event):
        self.events.append(event)
        return True


class ExplodingSink(RecordingSink):
    async def send(self, event):
        self.events.append(event)
        raise RuntimeError("sheet is down")


def make_test_config(**overrides) -> AppConfig:
    values = dict(
        database_url="sqlite://",
        sheet_webhook_url=None,
        timezone="Asia/Bangkok",
        log_level="DEBUG",
        replication_shutdown_grace_seconds=1.0,
    )
    values.update(overrides)
    return AppConfig(_env_file=None, **values)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def app(engine, sink):
    return create_app(config=make_test_config(), sink=sink, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def drain(client, app):
    """Block until the outbox has handed every queued event to the sink."""
    def _drain():
        client.portal.call(app.state.outbox.drain)
    return _drain


EGG_ORDER = {
    "items": [{"nameTh": "ไข่ไก่", "nameEn": "Egg", "price": 5, "qty": 2}],
    "pickupTime": "10:00",
}


@pytest.fixture
def egg_order():
    return {
        "items": [dict(item) for item in EGG_ORDER["items"]],
        "pickupTime": EGG_ORDER["pickupTime"],
    }
