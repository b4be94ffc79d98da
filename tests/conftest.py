import pytest
from flask import Flask


@pytest.fixture()
def app() -> Flask:
    return Flask(__name__)


@pytest.fixture()
def fake_db():
    from tests.fakes.firestore import FakeFirestore

    return FakeFirestore()


@pytest.fixture()
def store(fake_db):
    from functions.finance_api.store import RecordStore

    return RecordStore(fake_db, collection="finance")


@pytest.fixture(autouse=True)
def patch_finance_api_db(monkeypatch, fake_db):
    """
    Patch the cloud function to use an in-memory Firestore fake.

    This keeps tests fast and independent from the Firestore emulator.
    """
    import functions.finance_api.main as finance_main

    monkeypatch.setattr(finance_main, "get_db", lambda: fake_db)
    monkeypatch.delenv("FINANCE_COLLECTION", raising=False)
    monkeypatch.delenv("API_PREFIX", raising=False)
    monkeypatch.delenv("DEFAULT_CURRENCY", raising=False)
    monkeypatch.delenv("DEFAULT_TIMEZONE", raising=False)
