from flask import Flask, jsonify

from linkshelf.api import api_bp
from linkshelf.auth import auth_bp
from linkshelf.config import Config
from linkshelf.extensions import db, login_manager, migrate
from linkshelf.jobs.scheduler import start_scheduler


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "authentication required"}), 401

    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)

    @app.cli.command("init-db")
    def init_db_command():
        db.create_all()
        print("Initialized LinkShelf database.")

    with app.app_context():
        db.create_all()

    start_scheduler(app)
    return app
