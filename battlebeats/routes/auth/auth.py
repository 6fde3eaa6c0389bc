import logging
import secrets
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, redirect, request, session as flask_session
from flask_jwt_extended import get_jwt, set_access_cookies, unset_jwt_cookies, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from battlebeats.middleware.auth import token_required
from battlebeats.routes.route_utils import handle_errors
from battlebeats.services.google_oauth import GoogleOAuthService, profile_to_user_data
from battlebeats.services.storage import storage
from battlebeats.utils.exceptions import BattleBeatsError
from battlebeats.utils.jwt_utils import issue_session_token

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api')


def _frontend_url(path):
    return f"{current_app.config['FRONTEND_URL'].rstrip('/')}{path}"


def _login_failed():
    return redirect(_frontend_url('/login-failed'))


def _resolve_user_data(profile):
    """Keep an existing user's id and username; make a new user's username unique."""
    user_data = profile_to_user_data(profile)
    existing = storage.get_user_by_google_id(user_data['google_id'])
    if existing:
        user_data['id'] = existing.id
        user_data.pop('username', None)
        return user_data

    username = user_data.get('username')
    if username and storage.get_user_by_username(username):
        user_data['username'] = f"{username}-{user_data['google_id'][-6:]}"
    return user_data


@auth_bp.route('/login', methods=['GET'])
@handle_errors
def login():
    """Start the Google sign-in redirect"""
    oauth = GoogleOAuthService()
    state = secrets.token_urlsafe(24)
    flask_session['oauth_state'] = state
    return redirect(oauth.authorization_url(state))


@auth_bp.route('/auth/google/callback', methods=['GET'])
def google_callback():
    """Finish Google sign-in: upsert the user, open a session, set the cookie"""
    expected_state = flask_session.pop('oauth_state', None)
    state = request.args.get('state')
    code = request.args.get('code')

    if request.args.get('error') or not code or not state or state != expected_state:
        logger.warning("Google callback rejected: missing code or state mismatch")
        return _login_failed()

    try:
        oauth = GoogleOAuthService()
        tokens = oauth.exchange_code(code)
        profile = oauth.fetch_profile(tokens['access_token'])
        user = storage.upsert_user(_resolve_user_data(profile))
    except (BattleBeatsError, KeyError) as e:
        logger.warning(f"Google sign-in failed: {str(e)}")
        return _login_failed()

    ttl = current_app.config['SESSION_TTL']
    session_row = storage.create_session(user.id, ttl)
    token = issue_session_token(user, session_row)

    response = redirect(_frontend_url('/dashboard'))
    set_access_cookies(response, token, max_age=int(ttl.total_seconds()))
    logger.info(f"User {user.id} signed in")
    return response


@auth_bp.route('/logout', methods=['GET'])
def logout():
    try:
        verify_jwt_in_request(optional=True)
        sid = (get_jwt() or {}).get('sid')
        if sid:
            storage.delete_session(sid)
    except (JWTExtendedException, PyJWTError) as e:
        # Stale or revoked cookie: nothing server-side left to close
        logger.info(f"Logout with an unusable session token: {str(e)}")

    response = redirect(_frontend_url('/'))
    unset_jwt_cookies(response)
    return response


@auth_bp.route('/auth/user', methods=['GET'])
@token_required
@handle_errors
def get_auth_user(current_user):
    return jsonify(current_user.to_dict()), HTTPStatus.OK
