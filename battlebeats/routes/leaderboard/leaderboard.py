from flask import Blueprint, jsonify
from http import HTTPStatus
from battlebeats.routes.route_utils import handle_errors, parse_limit
from battlebeats.services.storage import storage

leaderboard_bp = Blueprint('leaderboard', __name__, url_prefix='/api/leaderboard')


@leaderboard_bp.route('/artists', methods=['GET'])
@handle_errors
def get_top_artists():
    """Participants ranked by votes received across all their tracks"""
    top_artists = storage.get_top_artists(parse_limit())
    return jsonify([
        {
            'rank': rank,
            'user': entry['user'].to_public_dict(),
            'total_votes': entry['total_votes'],
        }
        for rank, entry in enumerate(top_artists, start=1)
    ]), HTTPStatus.OK


@leaderboard_bp.route('/referrers', methods=['GET'])
@handle_errors
def get_top_referrers():
    top_referrers = storage.get_top_referrers(parse_limit())
    return jsonify([
        {
            'rank': rank,
            'user': entry['user'].to_public_dict(),
            'referral_count': entry['referral_count'],
        }
        for rank, entry in enumerate(top_referrers, start=1)
    ]), HTTPStatus.OK
