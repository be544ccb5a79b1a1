import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from bowar.core import security
from bowar.db import models
from bowar.db.schema import SCHEMA_VERSION, SchemaMismatchError, ensure_schema
from bowar.services.seed import ensure_operator_exists, seed


@pytest.fixture()
def engine():
    return create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )


def test_fresh_database_records_version(engine):
    assert ensure_schema(engine) == SCHEMA_VERSION
    assert ensure_schema(engine) == SCHEMA_VERSION

    with Session(engine) as session:
        assert session.query(models.SchemaVersion).count() == 1


def test_refuses_other_schema_version(engine):
    ensure_schema(engine)
    with Session(engine) as session:
        session.query(models.SchemaVersion).delete()
        session.add(models.SchemaVersion(version=SCHEMA_VERSION + 1))
        session.commit()

    with pytest.raises(SchemaMismatchError):
        ensure_schema(engine)


def test_creates_default_operator(db_session):
    ensure_operator_exists(db_session, "op", "OP@bowar.local", "strong_password")

    created = db_session.query(models.User).filter_by(username="op").one()

    assert created.role == models.UserRole.operator
    assert created.email == "op@bowar.local"
    assert security.verify_password("strong_password", created.password_hash)


def test_updates_password_for_existing_operator(db_session):
    ensure_operator_exists(db_session, "op", "op@bowar.local", "old_password")

    ensure_operator_exists(db_session, "op", "op@bowar.local", "new_password", warnet_id=None)

    operators = db_session.query(models.User).filter_by(username="op").all()
    assert len(operators) == 1
    assert security.verify_password("new_password", operators[0].password_hash)


def test_seed_creates_demo_warnet_with_operator(db_session):
    seed(db_session)
    seed(db_session)

    warnet = db_session.query(models.Warnet).one()
    assert len(warnet.rules) == 3
    operator = db_session.query(models.User).filter_by(role=models.UserRole.operator).one()
    assert operator.warnet_id == warnet.id
