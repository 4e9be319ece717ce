from dotenv import load_dotenv
load_dotenv()

import os
import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from extensions import db, login_manager, mail
from routes import register_blueprints

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    app = Flask(__name__)

    app.config['SECRET_KEY'] = os.environ.get("SECRET_KEY", "dev-secret-key")
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    # Email config
    app.config['MAIL_SERVER'] = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    app.config['MAIL_PORT'] = int(os.getenv("MAIL_PORT", 587))
    app.config['MAIL_USE_TLS'] = os.getenv("MAIL_USE_TLS", "True") == "True"
    app.config['MAIL_USERNAME'] = os.getenv("MAIL_USERNAME")
    app.config['MAIL_PASSWORD'] = os.getenv("MAIL_PASSWORD")
    app.config['MAIL_DEFAULT_SENDER'] = os.getenv("MAIL_DEFAULT_SENDER") or os.getenv("MAIL_USERNAME")

    # Configure database
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL") or "sqlite:///impactlink.db"
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
        "pool_pre_ping": True,  # Check if the connection is alive before using
        "pool_recycle": 300,  # Recycle connections after 300 seconds
    }
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # The API is consumed as JSON, so CSRF tokens are opt-in
    app.config['WTF_CSRF_ENABLED'] = os.getenv("WTF_CSRF_ENABLED", "False") == "True"

    app.config['SUBMISSION_UPLOAD_FOLDER'] = os.getenv("SUBMISSION_UPLOAD_FOLDER", "uploads/submissions")
    app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024  # 16MB
    app.config['MATCH_RESULT_LIMIT'] = int(os.getenv("MATCH_RESULT_LIMIT", 20))
    app.config['LOG_LEVEL'] = os.getenv("LOG_LEVEL", "INFO")

    if test_config:
        app.config.update(test_config)

    # Setup logging
    logging.basicConfig(level=getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)
    mail.init_app(app)

    register_blueprints(app)
    register_error_handlers(app)

    with app.app_context():
        import models  # noqa: F401  register tables before create_all
        db.create_all()

    logger.info("ImpactLink started with database %s", app.config["SQLALCHEMY_DATABASE_URI"].split('@')[-1])
    return app


@login_manager.user_loader
def load_user(id):
    from models import User
    return db.session.get(User, int(id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'message': 'Please log in to access this page.'}), 401


def register_error_handlers(app):

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'success': False, 'message': e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        app.logger.error(f"Unhandled error: {str(e)}")
        return jsonify({'success': False, 'message': 'Something went wrong. Please try again later.'}), 500


if __name__ == '__main__':
    create_app().run(debug=os.getenv("FLASK_DEBUG", "0") == "1")
