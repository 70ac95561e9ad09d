import os
from flask import Flask, jsonify, request
from flask_limiter import RateLimitExceeded
from dotenv import load_dotenv
from sqlalchemy import text

from .config import DevConfig, ProdConfig, TestConfig
from .extensions import db, migrate, cors, limiter
from .common.errors import register_error_handlers
from .common.logging import setup_json_logging, register_request_logging
from .sync.registry import ViewRegistry


def create_app(config_overrides=None):
    # Charge .env si présent (dev)
    load_dotenv()

    app = Flask(__name__)

    # Choix config selon env
    env = os.getenv("APP_ENV") or os.getenv("FLASK_ENV", "development")
    if env in ("test", "testing"):
        app.config.from_object(TestConfig)
    elif env == "production":
        app.config.from_object(ProdConfig)
    else:
        app.config.from_object(DevConfig)
    if config_overrides:
        app.config.update(config_overrides)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)

    setup_json_logging(app)
    register_request_logging(app)

    # Vues de listes ouvertes (une registry par app)
    app.extensions["list_views"] = ViewRegistry(
        max_notes_views=app.config.get("LIST_VIEWS_MAX_NOTES", 32)
    )

    # --- Helpers ---
    def _csv(value, default_if_empty):
        """Convertit une chaîne CSV en liste, sinon retourne la valeur telle quelle ou un défaut."""
        if value is None:
            return default_if_empty
        if isinstance(value, str) and "," in value:
            items = [x.strip() for x in value.split(",") if x.strip()]
            return items if items else default_if_empty
        return value

    # --- CORS: whitelist + headers ---
    origins = _csv(app.config.get("CORS_ORIGINS", "*"), "*")
    allow_headers = _csv(app.config.get("CORS_ALLOW_HEADERS"), ["Content-Type"])
    expose_headers = _csv(app.config.get("CORS_EXPOSE_HEADERS"), ["Content-Type"])

    cors.init_app(app, resources={
        r"/api/*": {
            "origins": origins,
            "allow_headers": allow_headers,
            "expose_headers": expose_headers,
            "supports_credentials": False,
        }
    })

    # --- Limiter: lit RATELIMIT_* depuis app.config ---
    limiter.init_app(app)

    # Importer les modèles pour que Flask-Migrate/Alembic voie les tables
    from .notebooks import models as notebooks_models  # noqa: F401
    from .notes import models as notes_models  # noqa: F401

    # Handlers d'erreurs JSON uniformes
    register_error_handlers(app)

    # --- Security headers (UN SEUL after_request) ---
    @app.after_request
    def set_security_headers(resp):
        path = request.path or ""

        if path.startswith("/docs"):
            resp.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "connect-src 'self'; "
                "img-src 'self' data:; "
                "style-src 'self' 'unsafe-inline'; "
                "script-src 'self'; "
                "font-src 'self' data:"
            )
            resp.headers["X-Frame-Options"] = "SAMEORIGIN"
        else:
            # API JSON: CSP très restrictif (pas d'HTML attendu)
            resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
            resp.headers["X-Frame-Options"] = "DENY"

        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["Referrer-Policy"] = "no-referrer"

        # HSTS uniquement si HTTPS (prod / reverse-proxy)
        if (env == "production" or app.config.get("ENFORCE_HTTPS")) and (
            request.is_secure or request.headers.get("X-Forwarded-Proto", "") == "https"
        ):
            resp.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"

        return resp

    # --- 429 Rate limit JSON ---
    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(e):
        return jsonify({"error": {"code": "rate_limited", "message": "Rate limit exceeded.", "details": {}}}), 429

    # --- Blueprints ---
    from .notebooks.routes import bp as notebooks_bp
    app.register_blueprint(notebooks_bp, url_prefix="/api/v1/notebooks")

    from .notes.routes import bp as notes_bp
    app.register_blueprint(notes_bp, url_prefix="/api/v1/notes")

    from .docs.routes import bp as docs_bp
    app.register_blueprint(docs_bp)

    # Rate limit par défaut sur les blueprints d'écriture (ex: 60/min)
    notes_limit = app.config.get("RATELIMIT_NOTES", "60/minute")
    limiter.limit(notes_limit)(notebooks_bp)
    limiter.limit(notes_limit)(notes_bp)

    # Liveness probe (ping DB simple)
    @app.get("/healthz")
    def healthz():
        db_status = "up"
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            app.logger.warning("healthz_db_down")
            db_status = "down"
        return jsonify({
            "status": "ok",
            "env": env,
            "db": db_status,
            "open_views": len(app.extensions["list_views"]),
        })

    # Readiness probe (DB + Redis si configuré)
    @app.get("/readyz")
    def readyz():
        status = {"db": "down", "redis": "n/a"}
        ok = True

        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            status["db"] = "up"
        except Exception:
            ok = False
            status["db"] = "down"

        # Redis (uniquement si RATELIMIT_STORAGE_URI utilise redis)
        try:
            uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
            if uri.startswith(("redis://", "rediss://")):
                import redis  # import tardif
                r = redis.from_url(uri)
                r.ping()
                status["redis"] = "up"
            else:
                status["redis"] = "n/a"
        except Exception:
            ok = False
            status["redis"] = "down"

        status["status"] = "ok" if ok else "error"
        return jsonify(status), (200 if ok else 503)

    return app
