from flask import Blueprint, request, jsonify, current_app
from notekeeper.notebooks.schemas import NotebookIn, NotebookOut, ChangeBatchOut
from notekeeper.notebooks.service import request_service
from notekeeper.notes.schemas import NoteCreateIn, NoteOut
from notekeeper.common.errors import ApiError
from notekeeper.common.utils import success, current_notices, raise_unsaved

bp = Blueprint("notebooks", __name__)

notebook_in = NotebookIn()
notebook_out = NotebookOut()
notebook_out_many = NotebookOut(many=True)
note_create_in = NoteCreateIn()
note_out = NoteOut()
note_out_many = NoteOut(many=True)
change_batches_out = ChangeBatchOut(many=True)

def _newest_first():
    order = request.args.get("order")
    if order is None:
        return current_app.config.get("NOTES_NEWEST_FIRST", True)
    if order not in ("newest", "oldest"):
        raise ApiError("Invalid order, expected 'newest' or 'oldest'.", 400, "validation_error",
                       details={"order": order})
    return order == "newest"

@bp.post("/")
def create_notebook():
    payload = request.get_json(silent=True) or {}
    data = notebook_in.load(payload)
    service = request_service()
    with service.views.collect() as batches:
        notebook = service.create_notebook(data["name"])
    if notebook is None:
        raise_unsaved()
    return jsonify({
        "notebook": notebook_out.dump(notebook),
        "changes": change_batches_out.dump(batches),
    }), 201

@bp.get("/")
def list_notebooks():
    service = request_service()
    view, notebooks = service.list_notebooks()
    return jsonify({
        "status": "success",
        "data": notebook_out_many.dump(notebooks),
        "meta": {"total": len(view)},
        "notices": current_notices(),
    }), 200

@bp.get("/<uuid:notebook_id>")
def get_notebook(notebook_id):
    notebook = request_service().get_notebook(notebook_id)
    return jsonify(notebook_out.dump(notebook)), 200

@bp.patch("/<uuid:notebook_id>")
def rename_notebook(notebook_id):
    service = request_service()
    notebook = service.get_notebook(notebook_id)
    payload = request.get_json(silent=True) or {}
    data = notebook_in.load(payload)
    with service.views.collect() as batches:
        saved = service.rename_notebook(notebook, data["name"])
    if not saved:
        raise_unsaved()
    return jsonify({
        "notebook": notebook_out.dump(notebook),
        "changes": change_batches_out.dump(batches),
    }), 200

@bp.delete("/<uuid:notebook_id>")
def delete_notebook(notebook_id):
    service = request_service()
    notebook = service.get_notebook(notebook_id)
    with service.views.collect() as batches:
        deleted = service.delete_notebook(notebook)
    if not deleted:
        raise_unsaved()
    return success({"changes": change_batches_out.dump(batches)}, message="notebook deleted")

@bp.get("/<uuid:notebook_id>/notes")
def list_notes(notebook_id):
    service = request_service()
    notebook = service.get_notebook(notebook_id)
    view, notes = service.list_notes(notebook, newest_first=_newest_first())
    return jsonify({
        "status": "success",
        "data": note_out_many.dump(notes),
        "meta": {"total": len(view), "notebook": notebook_out.dump(notebook)},
        "notices": current_notices(),
    }), 200

@bp.post("/<uuid:notebook_id>/notes")
def create_note(notebook_id):
    service = request_service()
    notebook = service.get_notebook(notebook_id)
    payload = request.get_json(silent=True) or {}
    data = note_create_in.load(payload)
    with service.views.collect() as batches:
        note = service.create_note(notebook, text=data["text"])
    if note is None:
        raise_unsaved()
    return jsonify({
        "note": note_out.dump(note),
        "changes": change_batches_out.dump(batches),
    }), 201
