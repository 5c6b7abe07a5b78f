from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFError, CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
from app.logger import get_logger
from app.buisness.core.mailer import Mailer

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"],
    storage_uri="memory://"  # Use Redis in production for distributed systems
)
mailer = Mailer()


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(config_overrides=None):
    from pathlib import Path

    base_dir = Path(__file__).parent.parent

    template_folder = str(base_dir / 'app' / 'presentation' / 'templates')
    static_folder = str(base_dir / 'app' / 'presentation' / 'static')

    app = Flask(__name__,
                template_folder=template_folder,
                static_folder=static_folder)

    logger = get_logger("clothing_store")
    logger.info("Initializing Flask application")

    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite file in instance/
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'clothing_store.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # HTTPS/TLS Configuration
    app.config['ENABLE_HTTPS'] = _env_flag('ENABLE_HTTPS', 'True')
    app.config['FORCE_HTTPS_REDIRECT'] = _env_flag('FORCE_HTTPS_REDIRECT', 'True')

    # Session cookie security configuration
    app.config['SESSION_COOKIE_SECURE'] = _env_flag('SESSION_COOKIE_SECURE', 'True')
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['PERMANENT_SESSION_LIFETIME'] = int(os.environ.get('PERMANENT_SESSION_LIFETIME', '3600'))

    app.config['REMEMBER_COOKIE_SECURE'] = _env_flag('REMEMBER_COOKIE_SECURE', 'True')
    app.config['REMEMBER_COOKIE_HTTPONLY'] = True
    app.config['REMEMBER_COOKIE_DURATION'] = int(os.environ.get('REMEMBER_COOKIE_DURATION', '86400'))

    # Web forms are CSRF-checked explicitly below; /api/ routes are exempt
    app.config['WTF_CSRF_CHECK_DEFAULT'] = False

    # Signed links and listings
    app.config['VERIFICATION_LINK_MINUTES'] = int(os.environ.get('VERIFICATION_LINK_MINUTES', '10'))
    app.config['PASSWORD_RESET_MINUTES'] = int(os.environ.get('PASSWORD_RESET_MINUTES', '10'))
    app.config['BUYS_PER_PAGE'] = int(os.environ.get('BUYS_PER_PAGE', '10'))

    # Mail
    app.config['MAIL_SERVER'] = os.environ.get('MAIL_SERVER')
    app.config['MAIL_PORT'] = int(os.environ.get('MAIL_PORT', '587'))
    app.config['MAIL_USE_TLS'] = _env_flag('MAIL_USE_TLS', 'True')
    app.config['MAIL_USERNAME'] = os.environ.get('MAIL_USERNAME')
    app.config['MAIL_PASSWORD'] = os.environ.get('MAIL_PASSWORD')
    app.config['MAIL_DEFAULT_SENDER'] = os.environ.get('MAIL_DEFAULT_SENDER', 'no-reply@clothing-store.local')
    app.config['MAIL_SUPPRESS_SEND'] = _env_flag('MAIL_SUPPRESS_SEND', 'False')

    if config_overrides:
        app.config.update(config_overrides)

    # SECURITY: Require SECRET_KEY - no fallback
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    if app.config['ENABLE_HTTPS']:
        logger.info("HTTPS enforcement enabled")
        if app.config['FORCE_HTTPS_REDIRECT']:
            logger.info("Automatic HTTP to HTTPS redirect enabled")
    else:
        logger.warning("HTTPS enforcement DISABLED - Acceptable for development only!")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    mailer.init_app(app)
    login_manager.login_view = 'auth.login_page'
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from app.data.core.user_info.user import User  # noqa: F401
    from app.data.inventory.cloth import Cloth  # noqa: F401
    from app.data.inventory.storage import Storage  # noqa: F401
    from app.data.inventory.buy import Buy  # noqa: F401

    logger.debug("Models imported and registered")

    from app.auth import auth
    from app.presentation.routes import main
    from app.presentation.routes import init_app as init_routes
    from app.presentation.responses import ActionResult, respond, wants_json
    from app.buisness.core.errors import DomainError

    app.register_blueprint(auth)
    app.register_blueprint(auth, url_prefix='/api', name='api_auth')
    app.register_blueprint(main)

    init_routes(app)

    @app.errorhandler(DomainError)
    def handle_domain_error(error):
        """Every business failure leaves through the response adapter"""
        return respond(ActionResult.from_error(error))

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        """Rejected form tokens answer in the same shape as any other failure"""
        from flask import request
        from app.utils.logging_sanitizer import sanitize_path
        logger.warning(f"CSRF check failed for {sanitize_path(request.path)}: {error.description}")
        return respond(ActionResult.failure(error.description, status=400))

    @login_manager.unauthorized_handler
    def unauthorized():
        from flask import flash, redirect, request, url_for
        if wants_json():
            return respond(ActionResult.failure('Unauthenticated', status=401))
        flash(login_manager.login_message, login_manager.login_message_category)
        return redirect(url_for('auth.login_page', next=request.path))

    @app.before_request
    def enforce_https():
        """Redirect HTTP requests to HTTPS if HTTPS enforcement is enabled"""
        if app.config.get('ENABLE_HTTPS') and app.config.get('FORCE_HTTPS_REDIRECT'):
            from flask import request, redirect

            if not request.is_secure and not request.headers.get('X-Forwarded-Proto') == 'https':
                url = request.url.replace('http://', 'https://', 1)
                return redirect(url, code=301)

    @app.before_request
    def protect_web_forms():
        """CSRF check for browser form posts; API clients are token-free"""
        from flask import request
        if not app.config.get('WTF_CSRF_ENABLED', True):
            return None
        if request.path.startswith('/api/'):
            return None
        csrf.protect()
        return None

    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-XSS-Protection'] = '1; mode=block'
        response.headers['Content-Security-Policy'] = (
            "default-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https:; "
            "font-src 'self' data:;"
        )
        if app.config.get('ENABLE_HTTPS'):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    logger.info("Flask application initialization complete")

    return app
