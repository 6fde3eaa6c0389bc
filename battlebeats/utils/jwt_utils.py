import logging
from http import HTTPStatus
from flask import jsonify
from flask_jwt_extended import create_access_token
from battlebeats.extensions.extension import jwt
from battlebeats.services.storage import storage

logger = logging.getLogger(__name__)


def issue_session_token(user, session):
    """Access token bound to one server-side session row"""
    return create_access_token(identity=str(user.id), additional_claims={'sid': session.sid})


@jwt.user_lookup_loader
def load_user(_jwt_header, jwt_data):
    return storage.get_user(jwt_data['sub'])


@jwt.token_in_blocklist_loader
def is_session_revoked(_jwt_header, jwt_data):
    session = storage.get_session(jwt_data.get('sid'))
    if session is None or not session.is_valid():
        return True
    return session.sess.get('user_id') != jwt_data['sub']


@jwt.unauthorized_loader
def missing_token(reason):
    return jsonify({'message': 'Unauthorized'}), HTTPStatus.UNAUTHORIZED


@jwt.invalid_token_loader
def invalid_token(reason):
    logger.info(f"Rejected invalid session token: {reason}")
    return jsonify({'message': 'Unauthorized'}), HTTPStatus.UNAUTHORIZED


@jwt.expired_token_loader
def expired_token(_jwt_header, _jwt_data):
    return jsonify({'message': 'Session expired'}), HTTPStatus.UNAUTHORIZED


@jwt.revoked_token_loader
def revoked_token(_jwt_header, _jwt_data):
    return jsonify({'message': 'Session expired'}), HTTPStatus.UNAUTHORIZED


@jwt.user_lookup_error_loader
def user_not_found(_jwt_header, _jwt_data):
    return jsonify({'message': 'Invalid token: User not found'}), HTTPStatus.UNAUTHORIZED
