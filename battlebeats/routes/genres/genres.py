from flask import Blueprint, jsonify
from http import HTTPStatus
from battlebeats.middleware.auth import admin_required
from battlebeats.routes.route_utils import get_json_body, handle_errors, validate_genre_input
from battlebeats.services.storage import storage

genres_bp = Blueprint('genres', __name__, url_prefix='/api/genres')


@genres_bp.route('', methods=['GET'])
@handle_errors
def get_genres():
    genres = storage.get_genres()
    return jsonify([genre.to_dict() for genre in genres]), HTTPStatus.OK


@genres_bp.route('', methods=['POST'])
@admin_required
@handle_errors
def create_genre(current_user):
    """Create a genre; the platform carries at most eight"""
    data = get_json_body()

    valid, message = validate_genre_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    genre = storage.create_genre(data['name'].strip(), data.get('max_trial_slots'))
    return jsonify(genre.to_dict()), HTTPStatus.CREATED
