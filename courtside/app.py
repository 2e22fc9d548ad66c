import logging
import os

import redis
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .auth import login_manager
from .config import config
from .errors import CourtsideError
from .game_manager import GameLifecycleManager
from .models import db
from .team_registry import TeamRegistry
from .tournament_registry import TournamentRegistry

logger = logging.getLogger(__name__)

migrate = Migrate()


def create_app(config_name: str = None) -> Flask:
    """Application factory for the courtside API."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))
    app.json.sort_keys = False

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Event publishing is optional
    redis_url = app.config.get('REDIS_URL')
    app.redis = redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5
    ) if redis_url else None

    # Create tables
    with app.app_context():
        db.create_all()

    # Store services on app for access in routes
    app.games = GameLifecycleManager(redis_client=app.redis)
    app.teams = TeamRegistry()
    app.tournaments = TournamentRegistry()

    register_error_handlers(app)
    register_routes(app)

    from .routes import games, teams, tournaments
    app.register_blueprint(games.bp)
    app.register_blueprint(teams.bp)
    app.register_blueprint(tournaments.bp)

    logger.info(f"Courtside started with '{config_name}' config")
    return app


def configure_logging(app: Flask):
    level = app.config.get('LOG_LEVEL', 'INFO')
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    logging.getLogger('courtside').setLevel(level)


def register_error_handlers(app: Flask):

    @app.errorhandler(CourtsideError)
    def handle_courtside_error(e: CourtsideError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({'msg': e.description}), e.code

        logger.exception(f"Unhandled error: {e}")
        db.session.rollback()
        return jsonify({'msg': 'Server Error'}), 500


def register_routes(app: Flask):

    @app.route('/health')
    def health_check():
        """Health check endpoint."""
        try:
            db.session.execute(db.text('SELECT 1'))
            db_ok = True
        except SQLAlchemyError:
            db_ok = False

        if app.redis is None:
            redis_state = 'disabled'
        else:
            try:
                app.redis.ping()
                redis_state = 'connected'
            except redis.exceptions.RedisError:
                redis_state = 'disconnected'

        healthy = db_ok and redis_state != 'disconnected'
        return jsonify({
            'status': 'healthy' if healthy else 'unhealthy',
            'database': 'connected' if db_ok else 'disconnected',
            'redis': redis_state
        }), 200 if healthy else 503
