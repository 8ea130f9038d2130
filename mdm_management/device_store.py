# mdm_management/device_store.py

import logging

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from mdm_management.db import devices
from mdm_management.errors import InvalidInput, NotFound
from mdm_management.models import DEVICE_METADATA_FIELDS, Device, SyncSummary

logger = logging.getLogger(__name__)

_DIALECT_INSERT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class DeviceStore:
    """Device directory keyed by serial number."""

    def __init__(self, db):
        self.db = db

    def upsert(self, batch):
        """Insert unseen devices and refresh the metadata of known ones.

        Each device commits on its own, so readers may see a half-applied
        batch. Running the same batch again converges on the same rows.
        """
        summary = SyncSummary()
        for device in batch:
            if not device.serial_number:
                logger.warning("skipping device without serial number: %r", device)
                continue
            if self._insert_if_absent(device):
                summary.inserted += 1
            else:
                self._update_metadata(device)
                summary.updated += 1
        logger.info("device upsert finished: %d inserted, %d updated", summary.inserted, summary.updated)
        return summary

    def get(self, serial_number):
        if not serial_number or not serial_number.strip():
            raise InvalidInput("serial number must not be empty")
        with self.db.connect() as conn:
            row = conn.execute(
                select(devices).where(devices.c.serial_number == serial_number)
            ).mappings().first()
        if row is None:
            raise NotFound(f"device {serial_number} not found")
        return _row_to_device(row)

    def list(self):
        with self.db.connect() as conn:
            rows = conn.execute(select(devices).order_by(devices.c.id)).mappings().all()
        return [_row_to_device(row) for row in rows]

    def _insert_if_absent(self, device):
        values = {
            "serial_number": device.serial_number,
            "udid": device.udid,
            "workflow_state": device.workflow_state,
        }
        values.update(device.metadata)

        insert = _DIALECT_INSERT.get(self.db.dialect)
        if insert is not None:
            stmt = insert(devices).values(**values).on_conflict_do_nothing(
                index_elements=[devices.c.serial_number]
            )
            with self.db.begin() as conn:
                return conn.execute(stmt).rowcount == 1

        # No ON CONFLICT support: let the unique index reject the duplicate.
        try:
            with self.db.begin() as conn:
                conn.execute(devices.insert().values(**values))
        except IntegrityError:
            return False
        return True

    def _update_metadata(self, device):
        with self.db.begin() as conn:
            conn.execute(
                devices.update()
                .where(devices.c.serial_number == device.serial_number)
                .values(**device.metadata)
            )


def _row_to_device(row):
    metadata = {field: row[field] for field in DEVICE_METADATA_FIELDS}
    return Device(
        serial_number=row["serial_number"],
        udid=row["udid"],
        workflow_state=row["workflow_state"],
        **metadata
    )
