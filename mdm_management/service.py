# mdm_management/service.py

"""The management service: the only entry point callers use.

It validates input before touching a store or the network, delegates
uniqueness to the profile store, and makes sure every failure leaves as one
of the kinds in ``mdm_management.errors``.
"""

import functools
import logging

from mdm_management.errors import InternalError, MDMError, Unavailable
from mdm_management.profile_store import parse_uuid
from mdm_management.schemas import parse_create_profile

logger = logging.getLogger(__name__)


def classified(func):
    """Pass MDMError through; log anything else and raise InternalError."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MDMError:
            raise
        except Exception:
            logger.exception("unexpected failure in %s", func.__name__)
            raise InternalError()
    return wrapper


class ManagementService:
    def __init__(self, profiles, devices, enrollment=None):
        """
        Args:
            profiles (ProfileStore): profile persistence.
            devices (DeviceStore): device persistence.
            enrollment (EnrollmentClient | None): DEP client; device
                synchronization is unavailable without one.
        """
        self.profiles = profiles
        self.devices = devices
        self.enrollment = enrollment

    @property
    def sync_enabled(self):
        return self.enrollment is not None

    @classified
    def create_profile(self, raw):
        request = parse_create_profile(raw)
        profile = self.profiles.create(request.payload_identifier, request.data.encode("utf-8"))
        logger.info("profile %s created for %s", profile.uuid, profile.payload_identifier)
        return profile

    @classified
    def get_profile(self, uuid):
        key = parse_uuid(uuid)
        return self.profiles.get(key)

    @classified
    def list_profiles(self):
        return self.profiles.list()

    @classified
    def synchronize_devices(self, timeout=None):
        if not self.sync_enabled:
            raise Unavailable("device synchronization is not configured")

        # A failed fetch raises before anything is written.
        fetched = self.enrollment.fetch_devices(timeout=timeout)
        summary = self.devices.upsert(fetched)
        logger.info("device sync complete: %d inserted, %d updated", summary.inserted, summary.updated)
        return summary

    @classified
    def list_devices(self):
        return self.devices.list()

    @classified
    def get_device(self, serial_number):
        return self.devices.get(serial_number)

    def close(self):
        if self.enrollment is not None:
            self.enrollment.close()
