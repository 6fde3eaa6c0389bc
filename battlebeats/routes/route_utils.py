# battlebeats/routes/route_utils.py
import logging
import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from functools import wraps
from http import HTTPStatus

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from battlebeats.extensions.extension import db
from battlebeats.models.admin_settings import PayoutSchedule
from battlebeats.models.battle import BattleStatus
from battlebeats.models.content_rating import Rating
from battlebeats.utils.exceptions import BattleBeatsError

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r'^https?://[^\s]+$')
DEFAULT_LEADERBOARD_LIMIT = 10
MAX_LEADERBOARD_LIMIT = 100


def handle_errors(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except BattleBeatsError as e:
            db.session.rollback()
            return jsonify({'message': e.message}), e.status_code
        except HTTPException:
            raise
        except Exception:
            db.session.rollback()
            logger.exception(f"Unhandled error in {f.__name__}")
            return jsonify({'message': 'Internal server error'}), HTTPStatus.INTERNAL_SERVER_ERROR
    return decorated_function


def get_json_body():
    """Request JSON as a dict; anything that is not a JSON object reads as empty"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def is_uuid(value):
    try:
        uuid.UUID(str(value))
        return True
    except (TypeError, ValueError):
        return False


def parse_datetime(value):
    """ISO-8601 string to naive UTC datetime, or None when unparseable"""
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_limit():
    limit = request.args.get('limit', DEFAULT_LEADERBOARD_LIMIT, type=int)
    if not limit or limit < 1:
        return DEFAULT_LEADERBOARD_LIMIT
    return min(limit, MAX_LEADERBOARD_LIMIT)


def _valid_url(value):
    return value is None or (isinstance(value, str) and URL_PATTERN.match(value) is not None)


def validate_genre_input(data):
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        return False, "Genre name is required"
    if len(name) > 100:
        return False, "Genre name is too long"

    max_trial_slots = data.get('max_trial_slots')
    if max_trial_slots is not None and (not isinstance(max_trial_slots, int) or max_trial_slots < 0):
        return False, "max_trial_slots must be a non-negative integer"
    return True, None


def validate_battle_input(data):
    if not data.get('title') or not isinstance(data.get('title'), str):
        return False, "Battle title is required"

    if parse_datetime(data.get('ends_at')) is None:
        return False, "ends_at must be an ISO-8601 datetime"

    if data.get('genre_id') is not None and not is_uuid(data.get('genre_id')):
        return False, "Invalid genre ID format"

    if data.get('status') is not None and data.get('status') not in BattleStatus._value2member_map_:
        return False, "Invalid status. Must be one of: active, ended, pending"

    prize_pool = data.get('prize_pool')
    if prize_pool is not None:
        try:
            if Decimal(str(prize_pool)) < 0:
                return False, "prize_pool must not be negative"
        except InvalidOperation:
            return False, "prize_pool must be a number"

    return True, None


def validate_status_input(data):
    if data.get('status') not in BattleStatus._value2member_map_:
        return False, "Invalid status. Must be one of: active, ended, pending"
    return True, None


def validate_track_input(data):
    if not data.get('title') or not isinstance(data.get('title'), str):
        return False, "Track title is required"

    if not is_uuid(data.get('battle_id')):
        return False, "A valid battle_id is required"

    if not _valid_url(data.get('audio_url')) or not _valid_url(data.get('bandlab_url')):
        return False, "Track URLs must be http(s) links"

    duration = data.get('duration')
    if duration is not None and (not isinstance(duration, int) or duration <= 0):
        return False, "duration must be a positive number of seconds"

    return True, None


def validate_vote_input(data):
    if not all(key in data for key in ('battle_id', 'track_id')):
        return False, "Missing required fields"
    if not is_uuid(data['battle_id']) or not is_uuid(data['track_id']):
        return False, "Invalid battle or track ID format"
    return True, None


def validate_referral_input(data):
    if not data.get('social_post_url') or not _valid_url(data.get('social_post_url')):
        return False, "A valid social_post_url is required"
    if data.get('referred_user_id') is not None and not is_uuid(data.get('referred_user_id')):
        return False, "Invalid referred user ID format"
    return True, None


def validate_admin_settings_input(data):
    schedule = data.get('payout_schedule')
    if schedule is not None and schedule not in PayoutSchedule._value2member_map_:
        return False, "Invalid payout_schedule. Must be one of: daily, weekly, monthly"
    account_id = data.get('stripe_account_id')
    if account_id is not None and not isinstance(account_id, str):
        return False, "stripe_account_id must be a string"
    return True, None


def validate_rating_input(data):
    rating = data.get('rating')
    if rating is not None and rating not in Rating._value2member_map_:
        return False, "Invalid rating. Must be one of: All Ages, 13+, 18+"
    return True, None
