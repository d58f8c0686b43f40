# hrbo_api/blueprints/transfers.py
from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from hrbo_api.common.auth import current_actor, requires_perms
from hrbo_api.common.http import ok, json_body
from hrbo_api.common.paging import page_limit, parse_sort, apply_sort, paginate
from hrbo_api.common.parsing import parse_date, parse_enum, parse_int
from hrbo_api.common.rows import transfer_row
from hrbo_api.common.statuses import TransferStatus
from hrbo_api.models.transfer import Transfer
from hrbo_api.services import transfer_lifecycle as lifecycle

bp = Blueprint("transfers", __name__, url_prefix="/api/v1/transfers")

_ID_FIELDS = (
    "from_branch_id", "to_branch_id",
    "from_department_id", "to_department_id",
    "from_designation_id", "to_designation_id",
)


@bp.get("")
@jwt_required()
@requires_perms("transfers.view")
def list_transfers():
    qry = Transfer.query
    for k in ("employee_id",) + _ID_FIELDS:
        v = parse_int(request.args.get(k), k)
        if v:
            qry = qry.filter(getattr(Transfer, k) == v)
    status = parse_enum(request.args.get("status"), "status", TransferStatus)
    if status:
        qry = qry.filter(Transfer.status == status)

    allowed = {"id": Transfer.id, "effective_date": Transfer.effective_date,
               "status": Transfer.status, "created_at": Transfer.created_at}
    qry = apply_sort(qry, parse_sort(request.args.get("sort")), allowed, Transfer.id)
    page, size = page_limit()
    p = paginate(qry, page, size)
    return ok([transfer_row(t) for t in p.items], **p.meta())


@bp.get("/<int:transfer_id>")
@jwt_required()
@requires_perms("transfers.view")
def get_transfer(transfer_id: int):
    return ok(transfer_row(lifecycle.get_transfer(transfer_id)))


@bp.post("")
@jwt_required()
def create_transfer():
    data = json_body()
    t = lifecycle.create(
        current_actor(),
        employee_id=parse_int(data.get("employee_id"), "employee_id", required=True),
        effective_date=parse_date(data.get("effective_date"), "effective_date"),
        reason=data.get("reason"),
        transfer_order_no=data.get("transfer_order_no"),
        **{k: parse_int(data.get(k), k) for k in _ID_FIELDS},
    )
    return ok(transfer_row(t), status=201)


@bp.post("/<int:transfer_id>/approve")
@jwt_required()
def approve_transfer(transfer_id: int):
    t = lifecycle.approve(current_actor(), lifecycle.get_transfer(transfer_id))
    return ok(transfer_row(t))


@bp.post("/<int:transfer_id>/reject")
@jwt_required()
def reject_transfer(transfer_id: int):
    t = lifecycle.reject(current_actor(), lifecycle.get_transfer(transfer_id), json_body().get("remarks"))
    return ok(transfer_row(t))


@bp.post("/<int:transfer_id>/cancel")
@jwt_required()
def cancel_transfer(transfer_id: int):
    t = lifecycle.cancel(current_actor(), lifecycle.get_transfer(transfer_id))
    return ok(transfer_row(t))


@bp.post("/<int:transfer_id>/complete")
@jwt_required()
def complete_transfer(transfer_id: int):
    t = lifecycle.complete(current_actor(), lifecycle.get_transfer(transfer_id))
    return ok(transfer_row(t))
