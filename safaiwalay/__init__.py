import os
from decimal import Decimal

import click
import sentry_sdk
from dotenv import load_dotenv
from flask import Flask
from sentry_sdk.integrations.flask import FlaskIntegration
from werkzeug.middleware.proxy_fix import ProxyFix

from safaiwalay.config import config_by_env
from safaiwalay.errors import register_error_handlers
from safaiwalay.extensions import bcrypt, cache, db, limiter, login_manager, migrate
from safaiwalay.logging_config import setup_logging
from safaiwalay.models import Service, User
from safaiwalay.routes.api.v1 import api_v1_bp
from safaiwalay.services import ChangeFeedService

DEFAULT_SERVICES = (
    ("Patio & Parking Cleaning", "999"),
    ("Solar Panel Cleaning", "600"),
    ("Carpet Cleaning", "500"),
    ("Terrace & Roof Cleaning", "1299"),
    ("Water Tank Cleaning", "1000"),
    ("Car Wash", "499"),
)


@login_manager.user_loader
def load_user(user_id):
    user = db.session.get(User, int(user_id))
    if user is None or user.is_deleted:
        return None
    return user


def create_app(env=None):
    load_dotenv()
    env = env or os.getenv("FLASK_ENV", "development")

    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_by_env.get(env, config_by_env["development"]))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    setup_logging(app)

    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if db_uri.startswith("sqlite:///") and not db_uri.startswith("sqlite:////") and db_uri != "sqlite:///:memory:":
        relative_path = db_uri.replace("sqlite:///", "", 1)
        absolute_path = os.path.join(project_root, relative_path)
        os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{absolute_path}"

    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    cache.init_app(app)
    limiter.init_app(app)
    login_manager.init_app(app)
    _init_sentry(app, env)

    register_error_handlers(app)
    app.register_blueprint(api_v1_bp, url_prefix="/api/v1")
    _register_commands(app)

    if env == "development":
        with app.app_context():
            db.create_all()

    return app


def _init_sentry(app, env):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.05")),
            environment=env,
        )
        app.logger.info("Sentry initialized.")
    except Exception as exc:
        app.logger.warning("Sentry initialization failed: %s", exc)


def _register_commands(app):
    @app.cli.command("prune-changes")
    @click.option("--days", type=int, default=None, help="Delete change events older than this many days.")
    def prune_changes(days):
        """Delete old change feed events."""
        days = days if days is not None else app.config["CHANGE_FEED_RETENTION_DAYS"]
        removed = ChangeFeedService.prune(days)
        click.echo(f"Removed {removed} change events older than {days} days.")

    @app.cli.command("seed-services")
    def seed_services():
        """Add the default service catalogue; existing names are left alone."""
        added = 0
        for name, price in DEFAULT_SERVICES:
            if Service.query.filter_by(name=name).first():
                continue
            db.session.add(Service(name=name, price=Decimal(price), is_active=True))
            added += 1
        db.session.commit()
        cache.clear()
        click.echo(f"Added {added} services.")
