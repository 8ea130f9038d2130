# mdm_management/config.py

import os


def _env_float(name, default):
    value = os.environ.get(name)
    return float(value) if value else default


def _env_int(name, default):
    value = os.environ.get(name)
    return int(value) if value else default


class Config:
    DATABASE_URL = os.environ.get("MDM_DATABASE_URL", "sqlite:///mdm.db")
    DATABASE_ECHO = os.environ.get("MDM_DATABASE_ECHO", "").lower() in ("1", "true", "yes")

    # Apple DEP. Synchronization stays disabled unless all of these are set.
    DEP_SERVER_URL = os.environ.get("MDM_DEP_SERVER_URL", "")
    DEP_CONSUMER_KEY = os.environ.get("MDM_DEP_CONSUMER_KEY", "")
    DEP_CONSUMER_SECRET = os.environ.get("MDM_DEP_CONSUMER_SECRET", "")
    DEP_ACCESS_TOKEN = os.environ.get("MDM_DEP_ACCESS_TOKEN", "")
    DEP_ACCESS_SECRET = os.environ.get("MDM_DEP_ACCESS_SECRET", "")
    DEP_TIMEOUT = _env_float("MDM_DEP_TIMEOUT", 30.0)
    DEP_PAGE_LIMIT = _env_int("MDM_DEP_PAGE_LIMIT", 100)
    # Tests swap in an httpx.MockTransport here.
    DEP_TRANSPORT = None

    LOG_LEVEL = os.environ.get("MDM_LOG_LEVEL", "INFO")
    LOG_FORMAT = os.environ.get("MDM_LOG_FORMAT", "text")

    HOST = os.environ.get("MDM_HOST", "127.0.0.1")
    PORT = _env_int("MDM_PORT", 8000)


def dep_enabled(config):
    keys = ("DEP_SERVER_URL", "DEP_CONSUMER_KEY", "DEP_CONSUMER_SECRET",
            "DEP_ACCESS_TOKEN", "DEP_ACCESS_SECRET")
    return all(config.get(key) for key in keys)
