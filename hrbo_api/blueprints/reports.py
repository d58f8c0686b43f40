# hrbo_api/blueprints/reports.py
from __future__ import annotations

from flask import Blueprint, request

from hrbo_api.common.auth import requires_perms
from hrbo_api.common.http import ok
from hrbo_api.common.parsing import parse_date
from hrbo_api.services import reports
from hrbo_api.services.report_filters import build_filter, filter_class

bp = Blueprint("reports", __name__, url_prefix="/api/v1/reports")


@bp.get("")
@requires_perms("reports.view")
def list_reports():
    return ok(reports.catalog())


@bp.get("/dashboard")
@requires_perms("reports.view")
def dashboard():
    today = parse_date(request.args.get("date"), "date")
    return ok(reports.dashboard(today))


@bp.get("/<kind>")
@requires_perms("reports.view")
def run_report(kind: str):
    f = build_filter(kind, request.args)
    page, summary = reports.run(f)
    row = reports.REPORTS[f.kind].row
    return ok(
        [row(x) for x in page.items],
        summary=summary,
        filters=f.to_dict(),
        **page.meta(),
    )


@bp.get("/<kind>/reset")
@requires_perms("reports.view")
def reset_report(kind: str):
    return ok(filter_class(kind).defaults().to_dict())
