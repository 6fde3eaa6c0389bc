import logging
from urllib.parse import urlencode

import requests
from flask import current_app

from battlebeats.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthService:
    def __init__(self):
        self.client_id = current_app.config.get('GOOGLE_CLIENT_ID')
        self.client_secret = current_app.config.get('GOOGLE_CLIENT_SECRET')
        self.redirect_uri = current_app.config.get('GOOGLE_REDIRECT_URI')
        if not self.client_id or not self.client_secret:
            raise ValidationError('Google sign-in is not configured')

    def authorization_url(self, state):
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': 'openid email profile',
            'state': state,
            'prompt': 'select_account',
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code):
        response = requests.post(
            GOOGLE_TOKEN_URL,
            data={
                'code': code,
                'client_id': self.client_id,
                'client_secret': self.client_secret,
                'redirect_uri': self.redirect_uri,
                'grant_type': 'authorization_code',
            },
            timeout=10,
        )
        if response.status_code != 200:
            logger.error(f"Google token exchange failed: {response.status_code} {response.text}")
            raise ValidationError('Google sign-in failed')
        return response.json()

    def fetch_profile(self, access_token):
        response = requests.get(
            GOOGLE_USERINFO_URL,
            headers={'Authorization': f'Bearer {access_token}'},
            timeout=10,
        )
        if response.status_code != 200:
            logger.error(f"Google userinfo request failed: {response.status_code}")
            raise ValidationError('Google sign-in failed')
        return response.json()


def profile_to_user_data(profile):
    """Map a Google userinfo payload onto user columns"""
    email = profile.get('email')
    return {
        'google_id': profile['sub'],
        'email': email,
        'first_name': profile.get('given_name'),
        'last_name': profile.get('family_name'),
        'profile_image_url': profile.get('picture'),
        'username': profile.get('name') or (email.split('@')[0] if email else None),
    }
