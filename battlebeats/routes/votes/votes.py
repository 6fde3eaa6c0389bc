from flask import Blueprint, jsonify
from http import HTTPStatus
from battlebeats.middleware.auth import token_required
from battlebeats.routes.route_utils import get_json_body, handle_errors, validate_vote_input
from battlebeats.services.storage import storage

votes_bp = Blueprint('votes', __name__, url_prefix='/api/votes')


@votes_bp.route('', methods=['POST'])
@token_required
@handle_errors
def cast_vote(current_user):
    """Cast the user's single vote in a battle"""
    data = get_json_body()

    valid, message = validate_vote_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    # Fast path; the unique constraint still decides concurrent submissions
    if storage.get_user_vote(current_user.id, data['battle_id']):
        return jsonify({'message': 'Already voted in this battle'}), HTTPStatus.BAD_REQUEST

    vote = storage.create_vote(current_user.id, data['track_id'], data['battle_id'])
    return jsonify(vote.to_dict()), HTTPStatus.OK
