from flask import Blueprint, jsonify
from http import HTTPStatus
from battlebeats.middleware.auth import token_required
from battlebeats.routes.route_utils import get_json_body, handle_errors, is_uuid
from battlebeats.services.storage import storage

trial_slots_bp = Blueprint('trial_slots', __name__, url_prefix='/api/trial-slots')


@trial_slots_bp.route('/<uuid:genre_id>', methods=['GET'])
@handle_errors
def get_available_trial_slots(genre_id):
    return jsonify({'available': storage.get_available_trial_slots(genre_id)}), HTTPStatus.OK


@trial_slots_bp.route('', methods=['POST'])
@token_required
@handle_errors
def claim_trial_slot(current_user):
    """Grant the user a one-month trial in a genre if a slot is left"""
    data = get_json_body()
    genre_id = data.get('genre_id')
    if not is_uuid(genre_id):
        return jsonify({'message': 'A valid genre_id is required'}), HTTPStatus.BAD_REQUEST

    trial_slot = storage.grant_trial_slot(current_user.id, genre_id)
    return jsonify(trial_slot.to_dict()), HTTPStatus.OK
