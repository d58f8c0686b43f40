# hrbo_api/services/transitions.py
from __future__ import annotations

from typing import Iterable
import logging

from hrbo_api.common.errors import InvalidStateError
from hrbo_api.extensions import db

log = logging.getLogger(__name__)


def guarded_update(model, obj, allowed_from: Iterable[str], values: dict, *, action: str, commit: bool = True):
    """
    Apply `values` to `obj` with one conditional UPDATE:

        UPDATE <table> SET ... WHERE id = :id AND status IN (:allowed_from)

    The status guard is evaluated by the database inside the same write, so
    when two actors race on the same row at most one UPDATE matches; the
    other sees zero affected rows and gets InvalidStateError. Pending ORM
    changes (autoflushed before the UPDATE) are rolled back with it.
    """
    allowed = [str(s) for s in allowed_from]
    n = (
        db.session.query(model)
        .filter(model.id == obj.id, model.status.in_(allowed))
        .update(values, synchronize_session=False)
    )
    if n != 1:
        db.session.rollback()
        current = db.session.query(model.status).filter(model.id == obj.id).scalar()
        label = model.__name__.lower()
        log.info("%s %s refused: %s id=%s is '%s'", action, label, label, obj.id, current)
        raise InvalidStateError(
            f"Cannot {action} {label} in '{current}' status",
            payload={"id": obj.id, "status": current, "allowed": allowed},
        )
    if commit:
        db.session.commit()
        db.session.refresh(obj)
    return obj
