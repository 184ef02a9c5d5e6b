import os

# Settings are read at import time; point them at an in-memory database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import ledgerbook.models  # noqa: F401
from ledgerbook.core.database import Base
from ledgerbook.core.dependencies import get_db
from ledgerbook.main import app
from ledgerbook.models.ledger import LedgerType
from ledgerbook.services.institute_service import create_institute
from ledgerbook.services.ledger_service import create_ledger

TENANT = "tenant-a"
OTHER_TENANT = "tenant-b"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, headers={"X-Tenant-ID": TENANT}) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def institute(db):
    return create_institute(db, TENANT, "Central Mahallu")


@pytest.fixture
def second_institute(db):
    return create_institute(db, TENANT, "North Madrasa")


@pytest.fixture
def ledgers(db, institute):
    """One ledger of each type inside the default institute."""
    return {
        "bank": create_ledger(db, TENANT, "Bank Account", LedgerType.BANK, institute_id=institute.id),
        "income": create_ledger(db, TENANT, "Donations", LedgerType.INCOME, institute_id=institute.id),
        "expense": create_ledger(db, TENANT, "Maintenance", LedgerType.EXPENSE, institute_id=institute.id),
    }


def day(n: int) -> date:
    return date(2026, 1, n)
