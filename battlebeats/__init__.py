from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix
import logging
from battlebeats.extensions.extension import db, jwt, migrate


def create_app(config_name='default', config_overrides=None):
    from battlebeats.config import config_by_name

    # Initialize app
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Honour X-Forwarded-* from the one proxy in front of us
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    origins = app.config['ALLOWED_ORIGINS']
    CORS(app, origins=origins if origins == '*' else origins.split(','), supports_credentials=True)

    # Initialize extensions with app
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    # Import JWT utils to register the loaders
    from battlebeats.utils import jwt_utils  # noqa: F401

    # Register blueprints
    from battlebeats.routes.auth.auth import auth_bp
    from battlebeats.routes.genres.genres import genres_bp
    from battlebeats.routes.battles.battles import battles_bp
    from battlebeats.routes.tracks.tracks import tracks_bp
    from battlebeats.routes.votes.votes import votes_bp
    from battlebeats.routes.leaderboard.leaderboard import leaderboard_bp
    from battlebeats.routes.trials.trial_slots import trial_slots_bp
    from battlebeats.routes.referrals.referrals import referrals_bp
    from battlebeats.routes.payments.stripe import payments_bp
    from battlebeats.routes.payments.webhooks import webhook_bp
    from battlebeats.routes.admin.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(genres_bp)
    app.register_blueprint(battles_bp)
    app.register_blueprint(tracks_bp)
    app.register_blueprint(votes_bp)
    app.register_blueprint(leaderboard_bp)
    app.register_blueprint(trial_slots_bp)
    app.register_blueprint(referrals_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(admin_bp)

    from battlebeats.commands import register_commands
    register_commands(app)

    @app.route('/')
    def index():
        return "Welcome to the API"

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({'message': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({'message': 'Method not allowed'}), 405

    from battlebeats import models  # noqa: F401

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


# Function to drop all tables (for reset operations)
def drop_all_tables(config_name='default'):
    with create_app(config_name).app_context():
        db.drop_all()
