import logging

from flask import Flask

from mdm_management.config import Config, dep_enabled
from mdm_management.db import Database
from mdm_management.device_store import DeviceStore
from mdm_management.enrollment import DEPCredentials, EnrollmentClient
from mdm_management.log import configure_logging
from mdm_management.profile_store import ProfileStore
from mdm_management.routes import main  # Import the blueprint
from mdm_management.service import ManagementService

logger = logging.getLogger(__name__)

API_PREFIX = '/management/v1'


def build_enrollment_client(config):
    if not dep_enabled(config):
        logger.info("DEP credentials not configured, device sync disabled")
        return None
    credentials = DEPCredentials(
        consumer_key=config['DEP_CONSUMER_KEY'],
        consumer_secret=config['DEP_CONSUMER_SECRET'],
        access_token=config['DEP_ACCESS_TOKEN'],
        access_secret=config['DEP_ACCESS_SECRET'],
    )
    return EnrollmentClient(
        credentials,
        server_url=config['DEP_SERVER_URL'],
        timeout=config['DEP_TIMEOUT'],
        page_limit=config['DEP_PAGE_LIMIT'],
        transport=config.get('DEP_TRANSPORT'),
    )


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    configure_logging(
        app.config['LOG_LEVEL'],
        app.config['LOG_FORMAT'],
        secrets=[app.config.get(key) for key in (
            'DEP_CONSUMER_KEY', 'DEP_CONSUMER_SECRET', 'DEP_ACCESS_TOKEN', 'DEP_ACCESS_SECRET')],
    )

    db = Database(app.config['DATABASE_URL'], echo=app.config.get('DATABASE_ECHO', False)).open()
    service = ManagementService(
        profiles=ProfileStore(db),
        devices=DeviceStore(db),
        enrollment=build_enrollment_client(app.config),
    )
    app.extensions['mdm_database'] = db
    app.extensions['mdm_service'] = service

    # Register the blueprint
    app.register_blueprint(main, url_prefix=API_PREFIX)

    return app


def shutdown(app):
    """Release the enrollment client and the database handle."""
    service = app.extensions.pop('mdm_service', None)
    if service is not None:
        service.close()
    db = app.extensions.pop('mdm_database', None)
    if db is not None:
        db.close()
