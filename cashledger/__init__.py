import logging

from flask import Flask, redirect, url_for
from .extensions import db, migrate, login_manager
from .config import Config
from . import formatting, ledger

from .blueprints.auth.routes import auth_bp
from .blueprints.transactions.routes import transactions_bp
from .blueprints.categories.routes import categories_bp
from .blueprints.etats.routes import etats_bp
from .blueprints.journal.routes import journal_bp
from .blueprints.reports.routes import reports_bp
from .blueprints.settings.routes import settings_bp


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    ledger.init_app(app)
    formatting.register_filters(app)

    # Ensure tables exist for a smooth first run
    with app.app_context():
        db.create_all()

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(etats_bp)
    app.register_blueprint(journal_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)

    @app.route("/")
    def root():
        return redirect(url_for("etats.index"))

    return app
