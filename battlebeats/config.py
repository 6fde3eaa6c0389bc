import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _normalize_db_url(db_url, require_ssl=False):
    if not db_url:
        return db_url
    # Replace postgres:// with postgresql:// for SQLAlchemy compatibility
    db_url = db_url.replace('postgres://', 'postgresql://')
    if require_ssl and db_url.startswith('postgresql') and 'sslmode=' not in db_url:
        db_url = f"{db_url}{'?' if '?' not in db_url else '&'}sslmode=require"
    return db_url


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-key-for-testing'
    DEBUG = False
    TESTING = False
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(os.getenv('DATABASE_URL')) or 'sqlite:///battlebeats.db'

    ALLOWED_ORIGINS = os.getenv('ALLOWED_ORIGINS', '*')
    FRONTEND_URL = os.getenv('FRONTEND_URL') or 'http://localhost:5000'

    # Sessions: one week, server-side row plus an httpOnly token cookie
    SESSION_TTL = timedelta(days=7)
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ALGORITHM = os.getenv('JWT_ALGORITHM', 'HS256')
    JWT_ACCESS_TOKEN_EXPIRES = SESSION_TTL
    JWT_TOKEN_LOCATION = ['cookies', 'headers']
    JWT_ACCESS_COOKIE_NAME = 'battlebeats_session'
    JWT_COOKIE_SECURE = False
    JWT_COOKIE_SAMESITE = 'Lax'
    JWT_COOKIE_CSRF_PROTECT = True
    SESSION_COOKIE_HTTPONLY = True

    # Google OAuth
    GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID')
    GOOGLE_CLIENT_SECRET = os.getenv('GOOGLE_CLIENT_SECRET')
    GOOGLE_REDIRECT_URI = os.getenv('GOOGLE_REDIRECT_URI', 'http://localhost:5000/api/auth/google/callback')

    # Stripe
    STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY')
    STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET')
    SUBSCRIPTION_PRICE_CENTS = int(os.getenv('SUBSCRIPTION_PRICE_CENTS', '499'))
    SUBSCRIPTION_CURRENCY = os.getenv('SUBSCRIPTION_CURRENCY', 'usd')


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = (
        _normalize_db_url(os.getenv('DEVELOPMENT_DATABASE_URL') or os.getenv('DATABASE_URL'))
        or 'sqlite:///battlebeats.db'
    )


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(os.getenv('TESTING_DATABASE_URL')) or 'sqlite://'
    JWT_COOKIE_CSRF_PROTECT = False
    STRIPE_SECRET_KEY = 'sk_test_dummy'
    STRIPE_WEBHOOK_SECRET = None
    GOOGLE_CLIENT_ID = 'test-client-id'
    GOOGLE_CLIENT_SECRET = 'test-client-secret'


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(
        os.getenv('PRODUCTION_DATABASE_URL') or os.getenv('DATABASE_URL'), require_ssl=True
    )
    JWT_COOKIE_SECURE = True
    SESSION_COOKIE_SECURE = True


class StagingConfig(Config):
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(os.getenv('DATABASE_URL'), require_ssl=True)
    JWT_COOKIE_SECURE = True
    SESSION_COOKIE_SECURE = True


config_by_name = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'staging': StagingConfig,
    'default': DevelopmentConfig
}
