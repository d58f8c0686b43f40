# hrbo_api/common/http.py
from flask import jsonify

def ok(data=None, status=200, summary=None, **meta):
    payload = {"success": True, "data": data}
    if meta:
        payload["meta"] = meta
    if summary is not None:
        payload["summary"] = summary
    return jsonify(payload), status

def fail(message="Bad Request", status=400, code=None, detail=None, errors=None):
    err = {"message": message}
    if code: err["code"] = code
    if detail: err["detail"] = detail
    if errors: err["errors"] = errors
    return jsonify({"success": False, "error": err}), status

def json_body() -> dict:
    from flask import request
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
