"""QR Attendance System - Application Factory."""
import logging
import os
from datetime import timedelta
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

    # Setup database and the services built on it
    setup_database(app)
    setup_services(app)

    # Add CLI commands
    register_commands(app)

    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'QR Attendance System',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from qr_attendance.api.auth import auth_bp
    from qr_attendance.api.courses import courses_bp
    from qr_attendance.api.lectures import lectures_bp
    from qr_attendance.api.attendance import attendance_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(courses_bp, url_prefix='/api/courses')
    app.register_blueprint(lectures_bp, url_prefix='/api/lectures')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from qr_attendance.utils.helpers import handle_error
    from qr_attendance.services.errors import AttendanceError, StoreError
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        if isinstance(error, StoreError):
            app.logger.error('Attendance store error: %r', error.__cause__)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error('Internal server error', 500)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'error': True,
            'message': 'Token has expired',
            'status_code': 401
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Invalid token',
            'status_code': 401
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Authorization token required',
            'status_code': 401
        }), 401

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    logging.getLogger('qr_attendance').setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('qr_attendance').addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('QR Attendance System startup')

def setup_database(app: Flask) -> None:
    """Register all models with the metadata."""
    with app.app_context():
        from qr_attendance.models import (
            User, UserRole, Course, Enrollment,
            Lecture, AttendanceRecord
        )

def setup_services(app: Flask) -> None:
    """Build the attendance marker once, over the shared session."""
    from qr_attendance.services.attendance_service import AttendanceMarker
    from qr_attendance.services.stores import AttendanceStore, EnrollmentStore, LectureStore

    app.extensions['attendance_marker'] = AttendanceMarker(
        lectures=LectureStore(db.session),
        enrollments=EnrollmentStore(db.session),
        attendance=AttendanceStore(db.session),
        buffer=timedelta(minutes=app.config['ATTENDANCE_BUFFER_MINUTES']),
        late_threshold=timedelta(minutes=app.config['ATTENDANCE_LATE_THRESHOLD_MINUTES'])
    )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('create-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def create_db(drop):
        """Create database tables."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with a demo course, lecture and users."""
        from qr_attendance.services.seed_service import SeedService

        summary = SeedService.seed_all()
        click.echo('Database seeded successfully!')
        for line in summary:
            click.echo(line)

    @app.cli.command('create-user')
    @click.option('--role', type=click.Choice(['student', 'teacher', 'admin']), default='admin')
    def create_user(role):
        """Create a user interactively."""
        email = click.prompt('Email')
        name = click.prompt('Name')
        password = click.prompt('Password', hide_input=True, confirmation_prompt=True)

        from qr_attendance.models.user import User, UserRole

        user = User(
            email=email.lower().strip(),
            name=name,
            role=UserRole(role)
        )
        user.set_password(password)

        try:
            db.session.add(user)
            db.session.commit()
            click.echo(f'{role.title()} user created: {email}')
        except Exception as e:
            db.session.rollback()
            raise click.ClickException(f'Error creating user: {e}')
