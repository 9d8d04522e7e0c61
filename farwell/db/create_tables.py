"""Create (or drop) the schema; run as ``python -m farwell.db.create_tables``."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from .session import Base, get_engine
from . import models  # noqa: F401  # registers users/access_tokens on the metadata

logger = logging.getLogger(__name__)


def create_all() -> None:
    Base.metadata.create_all(bind=get_engine())
    logger.debug("Schema ensured (%s)", ", ".join(sorted(Base.metadata.tables)))


def drop_all() -> None:
    Base.metadata.drop_all(bind=get_engine())


if __name__ == "__main__":
    try:
        create_all()
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
    print("Database tables created successfully.")
