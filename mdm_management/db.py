# mdm_management/db.py

"""Owned database handle.

The service never reaches for a global connection: a ``Database`` is opened
once at startup, passed into the stores, and closed at shutdown.
"""

import logging

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    create_engine,
)
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

metadata = MetaData()

profiles = Table(
    "profiles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("uuid", String(36), nullable=False, unique=True),
    Column("payload_identifier", String(255), nullable=False, unique=True),
    Column("data", LargeBinary, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

devices = Table(
    "devices",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("serial_number", String(64), nullable=False, unique=True),
    Column("udid", String(64), nullable=True, unique=True),
    Column("workflow_state", String(16), nullable=False),
    Column("model", String(255)),
    Column("description", String(255)),
    Column("color", String(64)),
    Column("asset_tag", String(255)),
    Column("profile_status", String(64)),
    Column("profile_uuid", String(64)),
    Column("profile_assign_time", String(64)),
    Column("device_assigned_date", String(64)),
    Column("device_assigned_by", String(255)),
    Column("os", String(64)),
    Column("device_family", String(64)),
)


class Database:
    def __init__(self, url, echo=False):
        self.url = url
        self.echo = echo
        self._engine = None

    @property
    def engine(self):
        if self._engine is None:
            raise RuntimeError("database is not open")
        return self._engine

    @property
    def dialect(self):
        return self.engine.dialect.name

    def open(self):
        if self._engine is not None:
            logger.warning("database already open")
            return self

        kwargs = {"echo": self.echo}
        if self.url == "sqlite://" or (self.url.startswith("sqlite") and ":memory:" in self.url):
            # one shared connection, or every checkout would see an empty database
            kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
        elif self.url.startswith("sqlite"):
            kwargs.update(connect_args={"check_same_thread": False})
        else:
            kwargs.update(pool_pre_ping=True)

        self._engine = create_engine(self.url, **kwargs)
        metadata.create_all(self._engine)
        logger.info("database opened (dialect=%s)", self._engine.dialect.name)
        return self

    def close(self):
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        logger.info("database closed")

    def begin(self):
        """Transaction context: commits on success, rolls back on error."""
        return self.engine.begin()

    def connect(self):
        return self.engine.connect()

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()
