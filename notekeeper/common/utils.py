from flask import jsonify, g
from notekeeper.common.errors import ApiError

def success(data=None, message="ok", status=200):
    return jsonify({"status": "success", "message": message, "data": data}), status

def current_notices():
    return [n.to_dict() for n in g.get("notices", [])]

def raise_unsaved(message="Changes could not be saved."):
    """Transforme la dernière notice du service en erreur 503."""
    notices = g.get("notices", [])
    if notices:
        notice = notices[-1]
        raise ApiError(notice.message, 503, "persistence_error", details=notice.to_dict())
    raise ApiError(message, 503, "persistence_error")
