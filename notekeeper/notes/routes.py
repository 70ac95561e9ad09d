from flask import Blueprint, request, jsonify
from notekeeper.notes.schemas import NoteIn, NoteOut
from notekeeper.notebooks.service import request_service
from notekeeper.notebooks.routes import change_batches_out
from notekeeper.common.utils import success, raise_unsaved

bp = Blueprint("notes", __name__)

note_in = NoteIn()
note_out = NoteOut()

@bp.get("/<uuid:note_id>")
def get_note(note_id):
    note = request_service().get_note(note_id)
    return jsonify(note_out.dump(note)), 200

@bp.patch("/<uuid:note_id>")
def update_note(note_id):
    service = request_service()
    note = service.get_note(note_id)
    payload = request.get_json(silent=True) or {}
    data = note_in.load(payload)
    with service.views.collect() as batches:
        saved = service.update_note_text(note, data["text"])
    if not saved:
        raise_unsaved()
    # IMPORTANT: toujours retourner quelque chose
    return jsonify({
        "note": note_out.dump(note),
        "changes": change_batches_out.dump(batches),
    }), 200

@bp.delete("/<uuid:note_id>")
def delete_note(note_id):
    service = request_service()
    note = service.get_note(note_id)
    with service.views.collect() as batches:
        deleted = service.delete_note(note)
    if not deleted:
        raise_unsaved()
    return success({"changes": change_batches_out.dump(batches)}, message="note deleted")
