from datetime import timedelta

from flask import Blueprint, current_app
from flask_jwt_extended import create_access_token, create_refresh_token, jwt_required, get_jwt_identity

from hrbo_api.common.auth import _collect_perms_from_db
from hrbo_api.common.http import ok, fail, json_body
from hrbo_api.extensions import db
from hrbo_api.models.user import User

bp = Blueprint("auth_v1", __name__, url_prefix="/api/v1/auth")


def _user_payload(u: User):
    return {
        "id": u.id,
        "email": u.email,
        "full_name": u.full_name,
        "employee_id": u.employee_id,
        "roles": u.role_codes(),
    }


def _claims(u: User) -> dict:
    return {
        "roles": u.role_codes(),
        "perms": sorted(_collect_perms_from_db(u.id)),
        "email": u.email,
        "name": u.full_name,
    }


def _load(uid):
    return db.session.get(User, int(uid)) if uid is not None and str(uid).isdigit() else None


@bp.post("/login")
def login():
    data = json_body()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    u = User.query.filter_by(email=email).first()
    if not u or not u.check_password(password):
        current_app.logger.info("login failed email=%s", email)
        return fail("Invalid credentials", status=401, code="invalid_credentials")
    if u.status != "active":
        return fail("Account is not active", status=403, code="inactive")

    access = create_access_token(identity=str(u.id), additional_claims=_claims(u), expires_delta=timedelta(days=1))
    refresh = create_refresh_token(identity=str(u.id), additional_claims={"roles": u.role_codes()})
    return ok({"access": access, "refresh": refresh, "user": _user_payload(u)})


@bp.post("/refresh")
@jwt_required(refresh=True)
def refresh():
    u = _load(get_jwt_identity())
    if not u:
        return fail("User not found", status=401, code="unauthorized")
    return ok({"access": create_access_token(identity=str(u.id), additional_claims=_claims(u))})


@bp.get("/me")
@jwt_required()
def me():
    u = _load(get_jwt_identity())
    if not u:
        return fail("User not found", status=404, code="not_found")
    data = _user_payload(u)
    data["perms"] = sorted(_collect_perms_from_db(u.id))
    return ok(data)
