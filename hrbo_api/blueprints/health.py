# hrbo_api/blueprints/health.py
from flask import Blueprint
from sqlalchemy import text

from hrbo_api.common.http import ok, fail
from hrbo_api.extensions import db

bp = Blueprint("health", __name__, url_prefix="/api")


@bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        db.session.rollback()
        return fail("database unavailable", status=503, code="db_unavailable", detail=str(e))
    return ok({"status": "ok"})
