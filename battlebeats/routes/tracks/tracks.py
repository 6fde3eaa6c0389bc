from flask import Blueprint, jsonify
from http import HTTPStatus
from battlebeats.middleware.auth import participant_required, token_required
from battlebeats.routes.route_utils import get_json_body, handle_errors, validate_rating_input, validate_track_input
from battlebeats.services.storage import storage

tracks_bp = Blueprint('tracks', __name__, url_prefix='/api/tracks')


@tracks_bp.route('', methods=['POST'])
@participant_required
@handle_errors
def submit_track(current_user):
    """Submit a track into a battle; the signed-in participant is the artist"""
    data = get_json_body()

    valid, message = validate_track_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    track = storage.create_track(
        title=data['title'],
        artist_id=current_user.id,
        battle_id=data['battle_id'],
        audio_url=data.get('audio_url'),
        bandlab_url=data.get('bandlab_url'),
        duration=data.get('duration'),
    )
    return jsonify(track.to_dict()), HTTPStatus.CREATED


@tracks_bp.route('/<uuid:track_id>/votes', methods=['GET'])
@handle_errors
def get_track_votes(track_id):
    return jsonify({'count': storage.get_vote_count(track_id)}), HTTPStatus.OK


@tracks_bp.route('/<uuid:track_id>/flag', methods=['POST'])
@token_required
@handle_errors
def flag_track(current_user, track_id):
    """Flag a track for an age rating review"""
    data = get_json_body()

    valid, message = validate_rating_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    content_rating = storage.flag_track(track_id, current_user.id, data.get('rating'))
    return jsonify(content_rating.to_dict()), HTTPStatus.OK
