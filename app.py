"""
Flask application factory for the Utility Billing Report application.
"""
from flask import Flask
from flask_caching import Cache
import logging
import os

from config import config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Initialize cache (will be configured in create_app)
cache = Cache()


def create_app(config_name='default', test_config=None):
    """
    Application factory pattern.

    Args:
        config_name: Configuration name (for future environments)
        test_config: Optional Flask config overrides

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    # App configuration
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    # Leave headroom over the upload limit so oversize files get a JSON error
    app.config['MAX_CONTENT_LENGTH'] = config.upload.max_file_size * 2
    app.json.sort_keys = False

    # Cache configuration
    # SimpleCache holds normalized uploads in-process (single worker)
    # For multi-worker: switch to Redis or FileSystemCache
    app.config['CACHE_TYPE'] = 'SimpleCache'
    app.config['CACHE_DEFAULT_TIMEOUT'] = config.report.session_timeout

    if test_config:
        app.config.update(test_config)

    # Initialize cache with app
    cache.init_app(app)

    app.logger.info(f"[CACHE] Initialized {app.config['CACHE_TYPE']} with {app.config['CACHE_DEFAULT_TIMEOUT']}s timeout")

    # Register blueprints
    from web.views import bp as main_bp
    app.register_blueprint(main_bp)

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
