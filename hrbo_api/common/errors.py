# hrbo_api/common/errors.py
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError

from hrbo_api.common.http import fail


class APIError(Exception):
    """Custom API Error class."""
    code = "api_error"
    status_code = 400

    def __init__(self, message, code=None, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.payload = payload


class ValidationError(APIError):
    """Malformed input: end before start, blank required field, unknown enum value."""
    code = "validation_error"
    status_code = 422


class InvalidStateError(APIError):
    """Transition attempted from a status that does not allow it."""
    code = "invalid_state"
    status_code = 409


class AuthorizationError(APIError):
    """Actor lacks the capability for the action."""
    code = "forbidden"
    status_code = 403


class NotFoundError(APIError):
    code = "not_found"
    status_code = 404


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        return fail(message=e.message, status=e.status_code, code=e.code, detail=e.payload)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(IntegrityError)
    def _integrity(e: IntegrityError):
        from hrbo_api.extensions import db
        db.session.rollback()
        # 409 for unique/FK violations
        return fail("Duplicate or FK constraint failed", status=409, code="constraint_error",
                    detail=str(e.orig) if getattr(e, "orig", None) else str(e))

    @app.errorhandler(Exception)
    def _500(e: Exception):
        app.logger.exception(e)
        return fail("Internal server error", status=500)
