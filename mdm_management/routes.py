# mdm_management/routes.py

import logging

from flask import Blueprint, current_app, jsonify, request

from mdm_management.errors import InvalidInput, MDMError

logger = logging.getLogger(__name__)

main = Blueprint('main', __name__)


def get_service():
    return current_app.extensions["mdm_service"]


@main.app_errorhandler(MDMError)
def handle_mdm_error(e):
    if e.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.path, e.kind)
    return jsonify(e.to_dict()), e.status_code


@main.route('/profiles', methods=['POST'])
def create_profile():
    profile = get_service().create_profile(request.get_data())
    return jsonify(profile.to_dict()), 201


@main.route('/profiles', methods=['GET'])
def list_profiles():
    profiles = get_service().list_profiles()
    return jsonify([p.to_dict() for p in profiles]), 200


@main.route('/profiles/<profile_id>', methods=['GET'])
def get_profile(profile_id):
    profile = get_service().get_profile(profile_id)
    return jsonify(profile.to_dict()), 200


@main.route('/devices/fetch', methods=['POST'])
def fetch_devices():
    timeout = request.args.get('timeout')
    if timeout is not None:
        try:
            timeout = float(timeout)
        except ValueError:
            raise InvalidInput("timeout must be a number of seconds")
        if not 0 < timeout < float('inf'):
            raise InvalidInput("timeout must be positive")

    summary = get_service().synchronize_devices(timeout=timeout)
    return jsonify(summary.to_dict()), 200


@main.route('/devices', methods=['GET'])
def list_devices():
    devices = get_service().list_devices()
    return jsonify([d.to_dict() for d in devices]), 200


@main.route('/devices/<serial_number>', methods=['GET'])
def get_device(serial_number):
    device = get_service().get_device(serial_number)
    return jsonify(device.to_dict()), 200
