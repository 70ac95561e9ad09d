# tests/conftest.py
import os, sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("APP_ENV", "test")

from notekeeper import create_app
from notekeeper.extensions import db
from notekeeper.notebooks.service import NotebookService
from notekeeper.sync.registry import ViewRegistry

from tests.fakes import FailingStore


@pytest.fixture()
def app():
    # une base SQLite en mémoire neuve par test
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "RATELIMIT_ENABLED": False,
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture()
def ctx(app):
    with app.app_context():
        yield

@pytest.fixture()
def notices():
    return []

@pytest.fixture()
def store(ctx):
    # n'échoue que si le test le demande (store.failing = True)
    return FailingStore(db.session, failing=False)

@pytest.fixture()
def views():
    return ViewRegistry()

@pytest.fixture()
def service(store, views, notices):
    return NotebookService(store, views, notify=notices.append)
