from flask import Blueprint, jsonify, request
from http import HTTPStatus
from battlebeats.middleware.auth import admin_required, participant_required
from battlebeats.models.battle import BattleStatus
from battlebeats.routes.route_utils import (
    get_json_body,
    handle_errors,
    is_uuid,
    parse_datetime,
    validate_battle_input,
    validate_status_input,
)
from battlebeats.services.storage import storage

battles_bp = Blueprint('battles', __name__, url_prefix='/api/battles')


@battles_bp.route('', methods=['GET'])
@handle_errors
def get_battles():
    """List battles, newest first, optionally filtered by genre and status"""
    genre_id = request.args.get('genre_id')
    status = request.args.get('status')

    if genre_id and not is_uuid(genre_id):
        return jsonify({'message': 'Invalid genre ID format'}), HTTPStatus.BAD_REQUEST
    if status and status not in BattleStatus._value2member_map_:
        return jsonify({'message': 'Invalid status. Must be one of: active, ended, pending'}), HTTPStatus.BAD_REQUEST

    battles = storage.get_battles(genre_id=genre_id, status=status)
    return jsonify([battle.to_dict() for battle in battles]), HTTPStatus.OK


@battles_bp.route('/<uuid:battle_id>', methods=['GET'])
@handle_errors
def get_battle(battle_id):
    battle = storage.get_battle(battle_id)
    if not battle:
        return jsonify({'message': 'Battle not found'}), HTTPStatus.NOT_FOUND
    return jsonify(battle.to_dict()), HTTPStatus.OK


@battles_bp.route('', methods=['POST'])
@participant_required
@handle_errors
def create_battle(current_user):
    data = get_json_body()

    valid, message = validate_battle_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    battle = storage.create_battle(
        title=data['title'],
        description=data.get('description'),
        genre_id=data.get('genre_id'),
        created_by_id=current_user.id,
        ends_at=parse_datetime(data['ends_at']),
        prize_pool=data.get('prize_pool'),
        status=data.get('status'),
    )
    return jsonify(battle.to_dict()), HTTPStatus.CREATED


@battles_bp.route('/<uuid:battle_id>/status', methods=['PATCH'])
@admin_required
@handle_errors
def update_battle_status(current_user, battle_id):
    """Move a battle along pending -> active -> ended"""
    data = get_json_body()

    valid, message = validate_status_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    battle = storage.update_battle_status(battle_id, data['status'])
    return jsonify(battle.to_dict()), HTTPStatus.OK


@battles_bp.route('/<uuid:battle_id>/tracks', methods=['GET'])
@handle_errors
def get_battle_tracks(battle_id):
    tracks = storage.get_tracks(battle_id)
    return jsonify([track.to_dict() for track in tracks]), HTTPStatus.OK


@battles_bp.route('/<uuid:battle_id>/votes', methods=['GET'])
@handle_errors
def get_battle_votes(battle_id):
    votes = storage.get_votes(battle_id)
    return jsonify([vote.to_dict() for vote in votes]), HTTPStatus.OK
