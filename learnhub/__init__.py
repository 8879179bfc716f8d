# learnhub/__init__.py
from flask import Flask, jsonify
from flask_cors import CORS
import logging

from learnhub.config import Config
from learnhub.rbac.errors import RBACError
from learnhub.rbac.ownership import OwnershipRegistry
from learnhub.utils.db import init_db, close_db
from learnhub.utils.logger import setup_logger

logger = logging.getLogger(__name__)


def create_app(config_overrides=None):
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    setup_logger('learnhub', app.config.get('LOG_LEVEL', 'INFO'), app.config.get('LOG_DIR'))

    # Configure CORS
    origins = app.config.get('CORS_ORIGINS', [])
    CORS(app,
         resources={
             r"/api/*": {
                 "origins": origins,
                 "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                 "allow_headers": ["Content-Type", "Authorization", "X-Requested-With"],
                 "supports_credentials": True,
                 "expose_headers": ["Content-Type", "Authorization"]
             }
         },
         supports_credentials=True)

    # Register database cleanup function
    app.teardown_appcontext(close_db)

    # Initialize database, seed roles and build the role table
    init_db(app)

    # Course, blog and quiz modules register their owner lookups here
    app.extensions['learnhub_ownership'] = OwnershipRegistry()

    @app.errorhandler(RBACError)
    def handle_rbac_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(500)
    def handle_internal_error(e):
        original = getattr(e, 'original_exception', None) or e
        logger.error(f"Unhandled error: {str(original)}", exc_info=original)
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    # Register blueprints (import here to avoid circular imports)
    from learnhub.routes.role_management import bp as role_management_bp
    from learnhub.routes.me import bp as me_bp
    from learnhub.routes.user_management import bp as user_management_bp

    app.register_blueprint(role_management_bp)
    app.register_blueprint(me_bp)
    app.register_blueprint(user_management_bp)

    logger.info(f"LearnHub app created (role definitions: {app.extensions['learnhub_role_table'].source})")

    return app
