"""Flask application factory for the TaskyNet back office API."""
import os
from datetime import datetime
from decimal import Decimal

import click
from flask import Flask, request
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .config import DevelopmentConfig, ProductionConfig
from .errors import ApiError
from .extensions import db
from .routes.auth import auth_bp
from .routes.collectors import collectors_bp
from .routes.company import company_bp
from .routes.customers import customers_bp
from .routes.employee import employee_bp
from .routes.invoices import invoices_bp
from .routes.main import main_bp
from .routes.reference import categories_bp, roles_bp, services_bp, zones_bp
from .routes.tasks import tasks_bp
from .routes.users import users_bp
from .services import notifications


def create_app(config_object=None):
    """Application factory to create configured Flask app instances."""
    app = Flask(__name__, instance_relative_config=True)

    # Ensure instance folder exists for SQLite
    os.makedirs(app.instance_path, exist_ok=True)

    _configure_app(app, config_object)
    _configure_logging(app)
    _register_extensions(app)
    _register_blueprints(app)
    _register_shellcontext(app)
    _register_security_headers(app)
    _register_request_hooks(app)
    _register_error_handlers(app)
    _register_commands(app)
    _setup_db(app)

    return app


def _configure_app(app, config_object=None):
    env = os.environ.get("FLASK_ENV") or os.environ.get("APP_ENV") or "development"
    if config_object:
        app.config.from_object(config_object)
    elif env.lower() == "production":
        app.config.from_object(ProductionConfig)
    else:
        app.config.from_object(DevelopmentConfig)
    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)


def _configure_logging(app):
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))


def _register_extensions(app):
    db.init_app(app)
    notifications.init_app(app)


def _register_blueprints(app):
    for blueprint in (
        main_bp,
        auth_bp,
        roles_bp,
        users_bp,
        services_bp,
        zones_bp,
        categories_bp,
        customers_bp,
        tasks_bp,
        invoices_bp,
        collectors_bp,
        company_bp,
        employee_bp,
    ):
        app.register_blueprint(blueprint)


def _register_shellcontext(app):
    @app.shell_context_processor
    def make_shell_context():
        from . import models  # noqa: WPS433

        context = {name: getattr(models, name) for name in models.__all__}
        context["db"] = db
        return context


def _setup_db(app):
    with app.app_context():
        # Import models to ensure metadata is loaded before table creation
        from . import models  # noqa: F401, WPS433

        # Auto-create SQLite database file and parent directory when missing
        database_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
        try:
            url = make_url(database_uri)
        except Exception:
            url = None

        if url and url.drivername.startswith("sqlite") and url.database:
            db_dir = os.path.dirname(url.database)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
            if not os.path.exists(url.database):
                app.logger.info("Initializing SQLite database at %s", url.database)

        db.create_all()


def _register_security_headers(app):
    @app.after_request
    def add_security_headers(response):
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        if app.config.get("ENV") == "production":
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")
        return response


def _register_request_hooks(app):
    if not app.config.get("LOG_REQUESTS", True):
        return

    @app.after_request
    def log_request(response):
        app.logger.info("%s %s -> %s", request.method, request.path, response.status_code)
        return response


def _register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        db.session.rollback()
        return error.to_dict(), error.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        db.session.rollback()
        detail = str(getattr(error, "orig", error)).lower()
        if "unique" in detail or "duplicate" in detail:
            message = "A record with these values already exists"
        elif "foreign key" in detail:
            message = "Record is referenced by or references a missing record"
        else:
            message = "Request violates a data constraint"
        app.logger.warning("Integrity error on %s %s: %s", request.method, request.path, detail)
        return {"error": message}, 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        db.session.rollback()
        return {"error": error.description or error.name}, error.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        db.session.rollback()
        app.logger.exception("Unhandled exception", exc_info=error)
        return {"error": "Internal server error"}, 500


def _register_commands(app):
    @app.cli.command("seed")
    def seed_command():
        """Create default roles, the bootstrap admin and sample reference data."""
        from .models import Category, RoleName, Service, User, Zone  # noqa: WPS433
        from .services import user_service  # noqa: WPS433

        user_service.ensure_default_roles()
        email = app.config["SEED_ADMIN_EMAIL"].strip().lower()
        if User.query.filter_by(email=email).first() is None:
            admin = User(
                first_name="System",
                last_name="Admin",
                phone_number="+96100000000",
                address="Head office, main street",
                email=email,
                role=user_service.role_by_name(RoleName.ADMIN),
            )
            admin.set_password(app.config["SEED_ADMIN_PASSWORD"])
            db.session.add(admin)
            click.echo(f"Created admin {email}")

        for name, cost in (("Basic 4MB", 20), ("Standard 8MB", 35), ("Premium 16MB", 60)):
            if Service.query.filter_by(name=name).first() is None:
                db.session.add(Service(name=name, cost=Decimal(cost)))
        for model, names in (
            (Zone, ("Downtown", "North district", "South district")),
            (Category, ("Installation", "Repair", "Maintenance")),
        ):
            for name in names:
                if model.query.filter_by(name=name).first() is None:
                    db.session.add(model(name=name))
        db.session.commit()
        click.echo("Seed complete")

    @app.cli.command("generate-invoices")
    @click.option("--year", type=int, default=None, help="Billing year (defaults to now).")
    @click.option("--month", type=int, default=None, help="Billing month 1-12 (defaults to now).")
    def generate_invoices_command(year, month):
        """Run the monthly invoice batch."""
        from .services import invoice_service  # noqa: WPS433

        now = datetime.utcnow()
        try:
            invoices = invoice_service.generate_monthly(year or now.year, month or now.month)
        except ApiError as exc:
            db.session.rollback()
            raise click.ClickException(exc.message) from exc
        click.echo(f"Generated {len(invoices)} invoices")
