"""ChoreQuest Flask application - Main entry point."""

import os
import sys
import logging
from pathlib import Path
from flask import Flask, jsonify, g
from flask_migrate import Migrate
from sqlalchemy import text
from werkzeug.middleware.proxy_fix import ProxyFix

# Configure logging for the entire application
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)

from chorequest.models import db  # noqa: E402
from chorequest.auth import (  # noqa: E402
    auth_required,
    get_current_user,
    household_admin_required,
    load_current_user,
)

logger = logging.getLogger(__name__)

# Initialize Flask-Migrate
migrate = Migrate()


def create_app(config_name=None):
    """Application factory pattern for Flask app creation."""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'production' if os.path.exists('/data') else 'development')

    from chorequest.config import config
    app.config.from_object(config[config_name])

    # Ensure data directory exists (skip for in-memory database)
    if app.config['SQLALCHEMY_DATABASE_URI'] != "sqlite:///:memory:":
        data_dir = Path(app.config['DATA_DIR'])
        data_dir.mkdir(parents=True, exist_ok=True)

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)

    # ProxyFix handles reverse proxy headers (X-Forwarded-For, etc.)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Register middleware
    app.before_request(load_current_user)

    # Register routes
    register_routes(app)

    with app.app_context():
        db.create_all()

    # Initialize background scheduler
    from chorequest.scheduler import init_scheduler
    init_scheduler(app)

    logger.info(f"ChoreQuest started with '{config_name}' configuration")
    return app


def register_routes(app):
    """Register all application routes."""

    from chorequest.routes import households_bp, tasks_bp, stats_bp, redemptions_bp

    app.register_blueprint(households_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(stats_bp)
    app.register_blueprint(redemptions_bp)

    @app.route('/health')
    def health():
        """Health check endpoint for monitoring."""
        try:
            # Check database connectivity
            db.session.execute(text('SELECT 1'))
            db_status = 'healthy'
        except Exception as e:
            db_status = f'unhealthy: {str(e)}'

        return jsonify({
            'status': 'healthy' if db_status == 'healthy' else 'degraded',
            'database': db_status,
            'auth_user': getattr(g, 'auth_email', None)
        })

    @app.route('/api/user')
    @auth_required
    def current_user():
        """Get current authenticated user with their household memberships."""
        user = get_current_user()
        data = user.to_dict()
        data['households'] = [
            {'household_id': m.household_id, 'role': m.role} for m in user.memberships
        ]
        return jsonify({'data': data})

    @app.route('/api/jobs')
    @household_admin_required
    def job_status():
        """Status of scheduled background jobs."""
        from chorequest.scheduler import get_job_status
        return jsonify({'data': get_job_status()})

    @app.route('/api/jobs/<job_id>/run', methods=['POST'])
    @household_admin_required
    def run_job(job_id):
        """Trigger a scheduled job immediately."""
        from chorequest.scheduler import run_job_now
        if not run_job_now(job_id):
            return jsonify({
                'error': 'Not Found',
                'message': f'Job {job_id} not found'
            }), 404
        return jsonify({'message': f'Job {job_id} triggered'})


if __name__ == '__main__':
    # Run development server
    create_app().run(host='0.0.0.0', port=8099, debug=True)
