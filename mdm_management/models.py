# mdm_management/models.py

import base64


# Workflow tag given to a device the first time a sync inserts it. Updates keep
# whatever tag the stored record already has.
WORKFLOW_NEW = "new"


# Enrollment metadata copied verbatim from the DEP device list.
DEVICE_METADATA_FIELDS = (
    "model",
    "description",
    "color",
    "asset_tag",
    "profile_status",
    "profile_uuid",
    "profile_assign_time",
    "device_assigned_date",
    "device_assigned_by",
    "os",
    "device_family",
)


class Profile:
    def __init__(self, uuid, payload_identifier, data, created_at=None):
        self.uuid = uuid
        self.payload_identifier = payload_identifier
        self.data = data
        self.created_at = created_at

    def to_dict(self):
        data, encoding = _encode_data(self.data)
        return {
            "uuid": self.uuid,
            "payload_identifier": self.payload_identifier,
            "data": data,
            "data_encoding": encoding,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __eq__(self, other):
        if not isinstance(other, Profile):
            return NotImplemented
        return (self.uuid, self.payload_identifier, self.data) == \
            (other.uuid, other.payload_identifier, other.data)

    def __repr__(self):
        return f"Profile(uuid={self.uuid!r}, payload_identifier={self.payload_identifier!r})"


class Device:
    def __init__(self, serial_number, udid=None, workflow_state=WORKFLOW_NEW, **metadata):
        self.serial_number = serial_number
        self.udid = udid
        self.workflow_state = workflow_state
        self.metadata = {field: metadata.get(field) for field in DEVICE_METADATA_FIELDS}

    @classmethod
    def from_dep(cls, record):
        """Build a Device from one entry of a DEP ``devices`` array."""
        metadata = {field: record.get(field) for field in DEVICE_METADATA_FIELDS}
        return cls(serial_number=record.get("serial_number"), **metadata)

    def to_dict(self):
        out = {
            "serial_number": self.serial_number,
            "udid": self.udid,
            "workflow_state": self.workflow_state,
        }
        out.update(self.metadata)
        return out

    def __eq__(self, other):
        if not isinstance(other, Device):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Device(serial_number={self.serial_number!r}, workflow_state={self.workflow_state!r})"


class SyncSummary:
    def __init__(self, inserted=0, updated=0):
        self.inserted = inserted
        self.updated = updated

    def to_dict(self):
        return {"inserted": self.inserted, "updated": self.updated}

    def __repr__(self):
        return f"SyncSummary(inserted={self.inserted}, updated={self.updated})"


def _encode_data(data):
    """Return (text, encoding): UTF-8 text as is, anything else as base64."""
    if data is None:
        return None, None
    try:
        return data.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        return base64.b64encode(data).decode("ascii"), "base64"
