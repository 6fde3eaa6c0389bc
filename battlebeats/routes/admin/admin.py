from flask import Blueprint, jsonify
from battlebeats.middleware.auth import admin_required
from battlebeats.routes.route_utils import (
    get_json_body,
    handle_errors,
    validate_admin_settings_input,
    validate_rating_input,
)
from battlebeats.services.storage import storage
from http import HTTPStatus

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/stats', methods=['GET'])
@admin_required
@handle_errors
def get_admin_stats(current_user):
    """Platform totals for the admin dashboard; revenue comes from recorded payments"""
    return jsonify(storage.get_admin_stats()), HTTPStatus.OK


@admin_bp.route('/settings', methods=['GET'])
@admin_required
@handle_errors
def get_admin_settings(current_user):
    settings = storage.get_admin_settings(current_user.id)
    if not settings:
        return jsonify({'message': 'No settings saved yet'}), HTTPStatus.NOT_FOUND
    return jsonify(settings.to_dict()), HTTPStatus.OK


@admin_bp.route('/settings', methods=['POST'])
@admin_required
@handle_errors
def update_admin_settings(current_user):
    data = get_json_body()

    valid, message = validate_admin_settings_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    settings = storage.upsert_admin_settings(current_user.id, data)
    return jsonify(settings.to_dict()), HTTPStatus.OK


@admin_bp.route('/content-ratings', methods=['GET'])
@admin_required
@handle_errors
def get_pending_content_ratings(current_user):
    ratings = storage.get_pending_content_ratings()
    return jsonify([rating.to_dict() for rating in ratings]), HTTPStatus.OK


@admin_bp.route('/content-ratings/<uuid:content_rating_id>/confirm', methods=['POST'])
@admin_required
@handle_errors
def confirm_content_rating(current_user, content_rating_id):
    data = get_json_body()

    valid, message = validate_rating_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    content_rating = storage.confirm_content_rating(content_rating_id, data.get('rating'))
    return jsonify(content_rating.to_dict()), HTTPStatus.OK
