"""QR Attendance - Application Factory."""
import logging
import os
import sys
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'QR Attendance',
            'version': '1.0.0'
        })

    return app


def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from qr_attendance.api.auth import auth_bp
    from qr_attendance.api.classes import classes_bp
    from qr_attendance.api.sessions import sessions_bp
    from qr_attendance.api.scan import scan_bp
    from qr_attendance.api.rotation import rotation_bp
    from qr_attendance.api.dashboard import dashboard_bp
    from qr_attendance.utils.swagger import (
        SWAGGER_URL, API_URL, generate_swagger_spec, get_swagger_blueprint
    )

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(classes_bp, url_prefix='/api/classes')
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(scan_bp, url_prefix='/api/scan')
    app.register_blueprint(rotation_bp, url_prefix='/api/rotation')
    app.register_blueprint(dashboard_bp, url_prefix='/api/dashboard')

    @app.route(API_URL)
    def swagger_spec():
        """Serve the OpenAPI document."""
        return jsonify(generate_swagger_spec())

    app.register_blueprint(get_swagger_blueprint(), url_prefix=SWAGGER_URL)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from werkzeug.exceptions import HTTPException
    from qr_attendance.utils.errors import AttendanceError, InfrastructureError
    from qr_attendance.utils.helpers import handle_error, error_response

    @app.errorhandler(AttendanceError)
    def handle_attendance_error(error):
        if isinstance(error, InfrastructureError):
            app.logger.error('Infrastructure failure: %s', error.detail or error, exc_info=error)
        return error_response(error.message, error.status_code)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e.description, e.code)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error('Internal server error', 500)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401)

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401)

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401)


def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        app.logger.info('QR Attendance startup')


def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models so metadata is complete
        from qr_attendance.models import (  # noqa: F401
            User, Role,
            SchoolClass, Enrollment,
            ClassSession, SessionStatus,
            Attendance, AttendanceStatus
        )


def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with demo data."""
        from qr_attendance.services.seed_service import SeedService

        credentials = SeedService.seed_all()
        click.echo('Database seeded successfully!')
        for email, password in credentials:
            click.echo(f'  {email} / {password}')

    @app.cli.command('create-admin')
    def create_admin():
        """Create admin user."""
        from qr_attendance.services.auth_service import AuthService
        from qr_attendance.utils.errors import AttendanceError

        email = click.prompt('Admin email')
        name = click.prompt('Admin name')
        password = click.prompt('Password', hide_input=True)

        try:
            user = AuthService.register(email, password, name, role='admin')
        except AttendanceError as e:
            raise click.ClickException(e.message)
        click.echo(f"Admin user created: {user['email']}")

    @app.cli.command('rotate-tokens')
    def rotate_tokens():
        """Re-mint QR tokens of every active session."""
        from qr_attendance.services.rotation_service import RotationService
        from qr_attendance.utils.errors import AttendanceError

        try:
            result = RotationService.run_rotation()
        except AttendanceError as e:
            app.logger.error('Token rotation failed: %s', e.detail or e.message, exc_info=e)
            click.echo(f'Rotation error: {e.message}', err=True)
            sys.exit(2)

        click.echo(f"Rotated {result['start']} start tokens and {result['end']} end tokens")
