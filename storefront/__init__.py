from flask import Flask, jsonify
from flask_migrate import Migrate
from flask_login import LoginManager
from storefront.extensions import db
from storefront.config import Config
from storefront.errors import register_error_handlers
from storefront.middleware import setup_auth_middleware
from storefront.services.audit_service import setup_major_events_log
from storefront.services.notifications import init_notifications
import logging

logger = logging.getLogger(__name__)

migrate = Migrate()
login_manager = LoginManager()


def configure_logging(log_file):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app.config.get('LOG_FILE'))
    if app.config.get('LOG_FILE'):
        setup_major_events_log('major_events.log')

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    init_notifications(app)

    # Setup user loader
    from storefront.models import User

    @login_manager.user_loader
    def load_user(user_id):
        user = db.session.get(User, int(user_id))
        if user and not user.is_active:
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Not logged in',
                        'login_required': True}), 401

    # Register blueprints
    from storefront.blueprints import (
        admin,
        auth,
        cart,
        orders,
        products,
        wallet,
    )

    app.register_blueprint(auth.bp, url_prefix='/api')
    app.register_blueprint(products.bp, url_prefix='/api')
    app.register_blueprint(cart.bp, url_prefix='/api')
    app.register_blueprint(orders.bp, url_prefix='/api')
    app.register_blueprint(wallet.bp, url_prefix='/api')
    app.register_blueprint(admin.bp, url_prefix='/api')

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    # Site-wide login protection for the API
    setup_auth_middleware(app)
    register_error_handlers(app)

    # Note: Database tables are managed via Flask-Migrate
    # Use 'flask db upgrade' to create/update tables

    logger.info("Flask application initialized")
    return app
