from flask import Blueprint, jsonify
from http import HTTPStatus
from battlebeats.middleware.auth import token_required
from battlebeats.routes.route_utils import get_json_body, handle_errors, validate_referral_input
from battlebeats.services.storage import storage

referrals_bp = Blueprint('referrals', __name__, url_prefix='/api/referrals')


@referrals_bp.route('', methods=['GET'])
@token_required
@handle_errors
def get_my_referrals(current_user):
    referrals = storage.get_referrals(current_user.id)
    return jsonify([referral.to_dict() for referral in referrals]), HTTPStatus.OK


@referrals_bp.route('', methods=['POST'])
@token_required
@handle_errors
def create_referral(current_user):
    """Record a social post that refers someone to the platform"""
    data = get_json_body()

    valid, message = validate_referral_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    if data.get('referred_user_id') == str(current_user.id):
        return jsonify({'message': 'You cannot refer yourself'}), HTTPStatus.BAD_REQUEST

    referral = storage.create_referral(
        referrer_id=current_user.id,
        social_post_url=data['social_post_url'],
        referred_user_id=data.get('referred_user_id'),
    )
    return jsonify(referral.to_dict()), HTTPStatus.CREATED
