"""Single versioned schema definition, checked when the application starts."""

import logging

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from . import models
from .session import Base

logger = logging.getLogger(__name__)

# Bump whenever a model change needs the database to be rebuilt.
SCHEMA_VERSION = 1


class SchemaMismatchError(RuntimeError):
    pass


def ensure_schema(engine: Engine) -> int:
    Base.metadata.create_all(bind=engine)
    with Session(engine) as session:
        stored = session.scalars(select(models.SchemaVersion.version)).all()
        if not stored:
            session.add(models.SchemaVersion(version=SCHEMA_VERSION))
            session.commit()
            logger.info("Initialised database schema at version %s", SCHEMA_VERSION)
            return SCHEMA_VERSION
        current = max(stored)
    if current != SCHEMA_VERSION:
        raise SchemaMismatchError(
            f"Database schema version {current} does not match expected {SCHEMA_VERSION}"
        )
    return current
