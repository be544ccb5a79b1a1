from datetime import date
from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bowar.api import deps
from bowar.api.errors import register_exception_handlers
from bowar.api.routes import auth, bookings, chat, misc, operator_bookings, transactions, warnets
from bowar.core import security
from bowar.core.context import RequestContext
from bowar.db import models
from bowar.db.session import Base, get_db
from bowar.services import storage


def _memory_engine():
    return create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )


@pytest.fixture(autouse=True)
def upload_root(monkeypatch, tmp_path):
    root = tmp_path / "uploads"
    monkeypatch.setattr(storage, "uploads_root", lambda: root)
    return root


@pytest.fixture()
def db_session():
    engine = _memory_engine()
    TestingSessionLocal = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
    )
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_warnet(db, **overrides) -> models.Warnet:
    values = dict(
        name="Bowar Gaming Center",
        address="Jl. Merdeka No. 1",
        regular_price_per_hour=Decimal("10000"),
        member_price_per_hour=Decimal("8000"),
        total_pcs=10,
        bank_account_number="1234567890",
        bank_account_name="Bowar",
    )
    values.update(overrides)
    warnet = models.Warnet(**values)
    db.add(warnet)
    db.commit()
    return warnet


def make_user(db, username="budi", role=models.UserRole.user, warnet_id=None, password="secret123") -> models.User:
    user = models.User(
        username=username,
        email=f"{username}@example.com",
        password_hash=security.get_password_hash(password),
        role=role,
        warnet_id=warnet_id,
    )
    db.add(user)
    db.commit()
    return user


def fund_wallet(db, user, warnet, balance) -> models.CafeWallet:
    wallet = models.CafeWallet(
        user_id=user.id,
        warnet_id=warnet.id,
        balance=Decimal(str(balance)),
        remaining_minutes=0,
        is_active=True,
    )
    db.add(wallet)
    db.commit()
    return wallet


def context(user) -> RequestContext:
    return RequestContext.from_user(user)


def booking_date() -> date:
    return date(2030, 1, 15)


@pytest.fixture()
def api_client():
    engine = _memory_engine()
    TestingSessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    test_app = FastAPI()
    for module in (auth, warnets, bookings, operator_bookings, transactions, chat, misc):
        test_app.include_router(module.router)
    register_exception_handlers(test_app)
    test_app.dependency_overrides[get_db] = override_get_db

    def act_as(user):
        ctx = context(user)
        test_app.dependency_overrides[deps.get_request_context] = lambda: ctx

    with TestClient(test_app) as client:
        yield client, TestingSessionLocal, act_as

    test_app.dependency_overrides.clear()
