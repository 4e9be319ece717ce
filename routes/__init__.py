# __init__.py
from routes.auth_routes import auth_bp
from routes.profile_routes import profile_bp
from routes.directory_routes import directory_bp
from routes.collaboration_routes import collab_bp
from routes.forum_routes import forum_bp
from routes.event_routes import event_bp
from routes.resource_routes import resource_bp
from routes.submission_routes import submission_bp
from routes.contact_routes import contact_bp
from routes.admin_routes import admin_bp


def register_blueprints(app):
    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(directory_bp)
    app.register_blueprint(collab_bp)
    app.register_blueprint(forum_bp)
    app.register_blueprint(event_bp)
    app.register_blueprint(resource_bp)
    app.register_blueprint(submission_bp)
    app.register_blueprint(contact_bp)
    app.register_blueprint(admin_bp)
