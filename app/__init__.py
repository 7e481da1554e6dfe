"""
Flask Application Factory
"""

import os
import logging
from flask import Flask
from flask_cors import CORS

logger = logging.getLogger(__name__)


def create_app(config_overrides: dict = None) -> Flask:
    """
    Application factory for creating Flask app.

    Args:
        config_overrides: Values applied on top of the environment configuration

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Load configuration
    app.config.update(
        SECRET_KEY=os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production'),
        SUPABASE_URL=os.getenv('SUPABASE_URL'),
        SUPABASE_ANON_KEY=os.getenv('SUPABASE_ANON_KEY'),
        SUPABASE_SERVICE_ROLE_KEY=os.getenv('SUPABASE_SERVICE_ROLE_KEY'),
        AI_GATEWAY_URL=os.getenv('AI_GATEWAY_URL'),
        AI_GATEWAY_API_KEY=os.getenv('AI_GATEWAY_API_KEY'),
        MAX_CONTENT_LENGTH=16 * 1024 * 1024,  # 16MB max request size
        DEV_MODE=os.getenv('DEV_MODE', 'false').lower() == 'true',
        MOCK_DB_FILE=None
    )
    if config_overrides:
        app.config.update(config_overrides)

    # Enable CORS
    CORS(app, resources={
        r"/api/*": {
            "origins": os.getenv('ALLOWED_ORIGINS', '*').split(','),
            "methods": ["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    # Register blueprints
    from app.routes import main_bp, api_bp
    from app.wizard_routes import wizard_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(wizard_bp, url_prefix='/api/sessions')

    # Initialize services
    with app.app_context():
        _initialize_services(app)

    logger.info("Flask application initialized successfully")

    return app


def _initialize_services(app: Flask) -> None:
    """Initialize application services."""
    from app.backend import SupabaseBackend, MockSupabaseBackend
    from aios_forge.llm_client import GatewayClient, create_client

    # Initialize persistence
    if app.config.get('DEV_MODE'):
        logger.warning("Initializing MockSupabaseBackend for DEV_MODE")
        app.backend = MockSupabaseBackend(db_file=app.config.get('MOCK_DB_FILE'))
    else:
        app.backend = SupabaseBackend(
            url=app.config['SUPABASE_URL'],
            anon_key=app.config['SUPABASE_ANON_KEY'],
            service_role_key=app.config['SUPABASE_SERVICE_ROLE_KEY']
        )

    # Initialize AI gateway client; chat and compliance are unavailable without a key
    if app.config.get('AI_GATEWAY_URL') and app.config.get('AI_GATEWAY_API_KEY'):
        app.llm_client = GatewayClient(
            api_key=app.config['AI_GATEWAY_API_KEY'],
            base_url=app.config['AI_GATEWAY_URL']
        )
    else:
        app.llm_client = create_client(app.config.get('AI_GATEWAY_API_KEY'))
