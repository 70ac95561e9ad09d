from flask import jsonify, current_app
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

class ApiError(Exception):
    def __init__(self, message, status_code=400, code="bad_request", details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}


class StoreError(Exception):
    """Échec du store persistant (SQLAlchemy ou autre)."""


class PersistenceError(StoreError):
    """La sauvegarde a échoué; la session a déjà été annulée."""


class QueryError(StoreError):
    """La requête de lecture a échoué."""


def _json_error(message, status, code, details=None):
    return jsonify({
        "error": {"code": code, "message": message, "details": details or {}}
    }), status

def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        return _json_error(e.message, e.status_code, e.code, e.details)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return _json_error("Invalid request body.", 400, "validation_error", e.messages)

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(e: PersistenceError):
        return _json_error("Changes could not be saved.", 503, "persistence_error")

    @app.errorhandler(QueryError)
    def handle_query_error(e: QueryError):
        return _json_error("Records could not be loaded.", 503, "query_error")

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        # Ex: 404, 405, 429…
        return _json_error(e.description or "HTTP error", e.code or 500, "http_error")

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        current_app.logger.exception("unexpected_error")
        return _json_error("Internal server error.", 500, "internal_error")
