import logging
import os

from flask import Flask, redirect, send_from_directory, session, url_for
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .models import User  # noqa: E402
from .shared.csrf import make_token  # noqa: E402
from .shared.time import fmt_date, fmt_dt  # noqa: E402


def create_app():
    app = Flask(__name__, template_folder="templates")
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.config["PREFERRED_URL_SCHEME"] = "https"
    app.jinja_env.filters["fmt_dt"] = fmt_dt
    app.jinja_env.filters["fmt_date"] = fmt_date
    app.jinja_env.globals["gcp_token"] = make_token

    DB_USER = os.getenv("DB_USER", "gcp")
    DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
    DB_HOST = os.getenv("DB_HOST", "db")
    DB_NAME = os.getenv("DB_NAME", "certificados")
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}",
    )

    app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    site_root = os.getenv("SITE_ROOT", "/srv")
    app.config["SITE_ROOT"] = site_root
    app.config["CERTIFICATES_DIR"] = os.getenv(
        "CERTIFICATES_DIR", os.path.join(site_root, "certificados-gcp")
    )
    app.config["CERTIFICATES_BASE_URL"] = os.getenv(
        "CERTIFICATES_BASE_URL", "/certificados-gcp"
    ).rstrip("/")
    app.config["FLUENTCRM_API_URL"] = os.getenv("FLUENTCRM_API_URL", "")
    app.config["FLUENTCRM_API_USERNAME"] = os.getenv("FLUENTCRM_API_USERNAME", "")
    app.config["FLUENTCRM_API_PASSWORD"] = os.getenv("FLUENTCRM_API_PASSWORD", "")
    app.config["CERTIFICATE_LOGO_URL"] = os.getenv("CERTIFICATE_LOGO_URL", "")

    db.init_app(app)

    from .services.slug_cache import init_slug_cache

    init_slug_cache(app)

    @app.context_processor
    def inject_user():
        user = None
        user_id = session.get("user_id")
        if user_id:
            user = db.session.get(User, user_id)
        return {"current_user": user}

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return "OK", 200

    @app.get("/")
    def index():
        if session.get("user_id"):
            return redirect(url_for("admin.expedir"))
        return redirect(url_for("public.mis_certificados"))

    @app.get("/certificados-gcp/<path:filename>")
    def certificate_file(filename: str):
        return send_from_directory(
            app.config["CERTIFICATES_DIR"], filename, mimetype="application/pdf"
        )

    from .routes.auth import bp as auth_bp
    from .routes.ajax import bp as ajax_bp
    from .routes.admin import bp as admin_bp
    from .routes.public import bp as public_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(ajax_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(public_bp)

    with app.app_context():
        if not os.getenv("FLASK_SKIP_SEED"):
            seed_initial_admin_safely()

    return app


def seed_initial_admin_safely() -> None:
    """Seed an initial admin user if the users table exists and is empty."""

    try:
        from sqlalchemy import inspect

        if "users" not in inspect(db.engine).get_table_names():
            logging.info("seed skipped (users table missing)")
            return
        if db.session.query(User).count() > 0:
            return
        password = os.getenv("FIRST_ADMIN_PASSWORD")
        if not password:
            logging.info("seed skipped (FIRST_ADMIN_PASSWORD not set)")
            return
        email = os.getenv("FIRST_ADMIN_EMAIL", "admin@example.com").lower()
        admin = User(email=email, full_name=email, is_admin=True)
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        logging.info("Seeded admin user %s", email)
    except Exception:
        db.session.rollback()
        logging.exception("seed_initial_admin_safely failed")
