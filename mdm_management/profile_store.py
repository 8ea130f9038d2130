# mdm_management/profile_store.py

import logging
import uuid as uuidlib
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from mdm_management.db import profiles
from mdm_management.errors import Conflict, InvalidInput, NotFound
from mdm_management.models import Profile

logger = logging.getLogger(__name__)


def parse_uuid(value):
    """Return the canonical string form of ``value`` or raise InvalidInput."""
    if not isinstance(value, str):
        raise InvalidInput("identifier must be a string")
    try:
        return str(uuidlib.UUID(value))
    except ValueError:
        raise InvalidInput(f"{value!r} is not a valid identifier")


class ProfileStore:
    """Profiles keyed by uuid, unique by payload_identifier."""

    def __init__(self, db):
        self.db = db

    def create(self, payload_identifier, data):
        """Insert a new profile and return it.

        The unique constraint on ``payload_identifier`` is the only duplicate
        check. Two concurrent creates with the same identifier both reach the
        INSERT; the database lets exactly one of them commit.
        """
        profile = Profile(
            uuid=str(uuidlib.uuid4()),
            payload_identifier=payload_identifier,
            data=data,
            created_at=datetime.now(timezone.utc),
        )
        try:
            with self.db.begin() as conn:
                conn.execute(
                    profiles.insert().values(
                        uuid=profile.uuid,
                        payload_identifier=profile.payload_identifier,
                        data=profile.data,
                        created_at=profile.created_at,
                    )
                )
        except IntegrityError:
            logger.info("duplicate payload_identifier %r rejected", payload_identifier)
            raise Conflict(f"profile with payload_identifier {payload_identifier!r} already exists")

        logger.debug("created profile %s (%s)", profile.uuid, payload_identifier)
        return profile

    def get(self, uuid):
        key = parse_uuid(uuid)
        with self.db.connect() as conn:
            row = conn.execute(
                select(profiles).where(profiles.c.uuid == key)
            ).mappings().first()
        if row is None:
            raise NotFound(f"profile {key} not found")
        return _row_to_profile(row)

    def list(self):
        with self.db.connect() as conn:
            rows = conn.execute(
                select(profiles).order_by(profiles.c.id)
            ).mappings().all()
        return [_row_to_profile(row) for row in rows]


def _row_to_profile(row):
    return Profile(
        uuid=row["uuid"],
        payload_identifier=row["payload_identifier"],
        data=bytes(row["data"]),
        created_at=row["created_at"],
    )
