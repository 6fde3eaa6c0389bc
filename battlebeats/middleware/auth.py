from functools import wraps
from http import HTTPStatus
from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request, get_current_user
from battlebeats.models.user import UserRole


def token_required(f):
    """
    Resolve the signed-in user from the session token and pass it to the view.
    Missing, expired or revoked sessions are answered with 401 by the JWT loaders.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        verify_jwt_in_request()
        current_user = get_current_user()
        if not current_user:
            return jsonify({'message': 'Invalid token: User not found'}), HTTPStatus.UNAUTHORIZED
        return f(current_user, *args, **kwargs)

    return decorated


def role_required(*roles):
    """
    Like token_required, and additionally answers 403 unless the user holds
    one of `roles`.
    """
    allowed = {role if isinstance(role, UserRole) else UserRole(role) for role in roles}
    role_names = ' or '.join(sorted(role.value for role in allowed))

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            verify_jwt_in_request()
            current_user = get_current_user()
            if not current_user:
                return jsonify({'message': 'Invalid token: User not found'}), HTTPStatus.UNAUTHORIZED

            if current_user.role not in allowed:
                return jsonify({
                    'message': f'Access denied: {role_names} role required'
                }), HTTPStatus.FORBIDDEN

            return f(current_user, *args, **kwargs)

        return decorated

    return decorator


admin_required = role_required(UserRole.admin)
participant_required = role_required(UserRole.participant)
