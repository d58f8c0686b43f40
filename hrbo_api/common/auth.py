# hrbo_api/common/auth.py
from __future__ import annotations

from dataclasses import dataclass, field
from functools import wraps
from typing import FrozenSet, Iterable, Set

from flask import current_app, g
from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity

from hrbo_api.common.errors import AuthorizationError
from hrbo_api.common.http import fail
from hrbo_api.extensions import db
from hrbo_api.models.user import User
from hrbo_api.models.security import Role, Permission, UserRole, RolePermission


# ---------- helpers ----------

def _wildcard_match(user_perm: str, required: str) -> bool:
    """
    Match required permission against a user's permission with simple wildcards.
    Examples:
      user_perm: 'movements.*'        matches required: 'movements.approve'
      user_perm: 'movements.approve'  matches only exact
    """
    if user_perm == required:
        return True
    if user_perm.endswith(".*"):
        prefix = user_perm[:-2]
        return required.startswith(prefix + ".")
    return False


def _has_any_perm(user_perms: Set[str], required_perms: Iterable[str]) -> bool:
    if not required_perms:
        return True
    if not user_perms:
        return False
    for req in required_perms:
        if any(_wildcard_match(up, req) for up in user_perms):
            return True
    return False


def _collect_perms_from_db(user_id: int) -> Set[str]:
    """
    Load *distinct* permission codes granted to the user via roles.
    """
    q = (
        db.session.query(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .join(Role, Role.id == RolePermission.role_id)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user_id)
        .distinct()
    )
    return {row[0] for row in q.all()}


def _collect_roles_from_db(user_id: int) -> Set[str]:
    q = (
        db.session.query(Role.code)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user_id)
        .distinct()
    )
    return {row[0] for row in q.all()}


# ---------- actor context ----------

@dataclass(frozen=True)
class ActorContext:
    """
    Who is acting. Passed explicitly into service calls so that business rules
    never read request globals.
    """
    user_id: int | None
    employee_id: int | None = None
    perms: FrozenSet[str] = field(default_factory=frozenset)
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles

    def can(self, *perm_codes: str) -> bool:
        return self.is_admin or _has_any_perm(set(self.perms), perm_codes)

    def require(self, *perm_codes: str, message: str | None = None):
        if not self.can(*perm_codes):
            raise AuthorizationError(message or f"Permission required: {', '.join(perm_codes)}")

    def is_employee(self, employee_id) -> bool:
        return self.employee_id is not None and self.employee_id == employee_id


def actor_for_user(user: User) -> ActorContext:
    return ActorContext(
        user_id=user.id,
        employee_id=user.employee_id,
        perms=frozenset(_collect_perms_from_db(user.id)),
        roles=frozenset(user.role_codes()),
    )


def current_actor() -> ActorContext:
    """Resolve the JWT identity to an ActorContext (cached per request)."""
    cached = getattr(g, "_actor", None)
    if cached is not None:
        return cached
    uid = get_jwt_identity()
    user = db.session.get(User, int(uid)) if uid is not None and str(uid).isdigit() else None
    if not user:
        raise AuthorizationError("Unauthorized", code="unauthorized", status_code=401)
    g._actor = actor_for_user(user)
    return g._actor


# ---------- decorators ----------

def requires_perms(*perm_codes: str):
    """
    Require that the current user has ANY of the given permission codes.

    Fast path: read 'perms' and 'roles' from JWT claims if present.
    Fallback:  query DB for permissions via role mappings.

    Supports simple wildcards granted to the user ('movements.*').
    """
    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            if not perm_codes:
                return fn(*args, **kwargs)

            claims = get_jwt() or {}
            if "admin" in set(claims.get("roles") or []):
                return fn(*args, **kwargs)

            jwt_perms = set(claims.get("perms") or [])
            if jwt_perms and _has_any_perm(jwt_perms, perm_codes):
                return fn(*args, **kwargs)

            # DB fallback (fresh live read, covers stale tokens)
            uid = get_jwt_identity()
            user = db.session.get(User, int(uid)) if uid is not None and str(uid).isdigit() else None
            if not user:
                return fail("Unauthorized", status=401, code="unauthorized")

            if "admin" in _collect_roles_from_db(user.id):
                return fn(*args, **kwargs)

            db_perms = _collect_perms_from_db(user.id)
            if not _has_any_perm(db_perms, perm_codes):
                current_app.logger.warning(
                    "RBAC deny user=%s needs=%s has=%d perms",
                    user.email, ",".join(perm_codes), len(db_perms),
                )
                return fail("Forbidden", status=403, code="forbidden")

            return fn(*args, **kwargs)
        return inner
    return outer
