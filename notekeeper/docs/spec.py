# notekeeper/docs/spec.py
from apispec import APISpec
from apispec.ext.marshmallow import MarshmallowPlugin
from marshmallow import Schema, fields

from notekeeper.notebooks.schemas import NotebookIn, NotebookOut, ChangeBatchOut
from notekeeper.notes.schemas import NoteCreateIn, NoteIn, NoteOut


class NoticeSchema(Schema):
    title = fields.String()
    message = fields.String()
    operation = fields.String()

class ErrorSchema(Schema):
    code = fields.String()
    message = fields.String()
    details = fields.Dict()

class ErrorEnvelopeSchema(Schema):
    error = fields.Nested(ErrorSchema)

def _ref(name: str):
    return {"$ref": f"#/components/schemas/{name}"}

def _json(name: str, description: str = "OK"):
    return {"description": description, "content": {"application/json": {"schema": _ref(name)}}}

def _body(name: str, required: bool = True):
    return {"required": required, "content": {"application/json": {"schema": _ref(name)}}}

def _id_param(name: str):
    return [{"in": "path", "name": name, "required": True, "schema": {"type": "string", "format": "uuid"}}]

_CHANGES = {"type": "array", "items": _ref("ChangeBatch")}

def _with_changes(key: str, name: str):
    return {"type": "object", "properties": {key: _ref(name), "changes": _CHANGES}}

def _list_of(name: str):
    return {
        "type": "object",
        "properties": {
            "status": {"type": "string"},
            "data": {"type": "array", "items": _ref(name)},
            "meta": {"type": "object"},
            "notices": {"type": "array", "items": _ref("Notice")},
        },
    }

def build_spec():
    spec = APISpec(
        title="Notekeeper API",
        version="1.0.0",
        openapi_version="3.0.3",
        info={"description": "Notebooks/Notes service — OpenAPI spec"},
        plugins=[MarshmallowPlugin()],
    )

    # Composants
    spec.components.schema("NotebookIn", schema=NotebookIn)
    spec.components.schema("NotebookOut", schema=NotebookOut)
    spec.components.schema("NoteCreateIn", schema=NoteCreateIn)
    spec.components.schema("NoteIn", schema=NoteIn)
    spec.components.schema("NoteOut", schema=NoteOut)
    spec.components.schema("ChangeBatch", schema=ChangeBatchOut)
    spec.components.schema("Notice", schema=NoticeSchema)
    spec.components.schema("Error", schema=ErrorEnvelopeSchema)

    unsaved = _json("Error", "Store could not save the change")
    not_found = _json("Error", "Not found")

    # ---- NOTEBOOKS ----
    spec.path(
        path="/api/v1/notebooks/",
        operations={
            "get": {
                "summary": "List notebooks (newest first)",
                "responses": {"200": {"description": "OK", "content": {"application/json": {"schema": _list_of("NotebookOut")}}}},
            },
            "post": {
                "summary": "Create notebook",
                "requestBody": _body("NotebookIn"),
                "responses": {
                    "201": {"description": "Created", "content": {"application/json": {"schema": _with_changes("notebook", "NotebookOut")}}},
                    "400": _json("Error", "Invalid body"),
                    "503": unsaved,
                },
            },
        },
    )

    spec.path(
        path="/api/v1/notebooks/{id}",
        operations={
            "get": {
                "summary": "Get notebook by id",
                "parameters": _id_param("id"),
                "responses": {"200": _json("NotebookOut"), "404": not_found},
            },
            "patch": {
                "summary": "Rename notebook",
                "parameters": _id_param("id"),
                "requestBody": _body("NotebookIn"),
                "responses": {
                    "200": {"description": "OK", "content": {"application/json": {"schema": _with_changes("notebook", "NotebookOut")}}},
                    "404": not_found,
                    "503": unsaved,
                },
            },
            "delete": {
                "summary": "Delete notebook and its notes",
                "parameters": _id_param("id"),
                "responses": {"200": {"description": "Deleted"}, "404": not_found, "503": unsaved},
            },
        },
    )

    spec.path(
        path="/api/v1/notebooks/{id}/notes",
        operations={
            "get": {
                "summary": "List the notes of a notebook",
                "parameters": _id_param("id") + [
                    {"in": "query", "name": "order", "schema": {"type": "string", "enum": ["newest", "oldest"]}},
                ],
                "responses": {
                    "200": {"description": "OK", "content": {"application/json": {"schema": _list_of("NoteOut")}}},
                    "404": not_found,
                },
            },
            "post": {
                "summary": "Add a note to a notebook",
                "parameters": _id_param("id"),
                "requestBody": _body("NoteCreateIn", required=False),
                "responses": {
                    "201": {"description": "Created", "content": {"application/json": {"schema": _with_changes("note", "NoteOut")}}},
                    "404": not_found,
                    "503": unsaved,
                },
            },
        },
    )

    # ---- NOTES ----
    spec.path(
        path="/api/v1/notes/{id}",
        operations={
            "get": {
                "summary": "Get note by id",
                "parameters": _id_param("id"),
                "responses": {"200": _json("NoteOut"), "404": not_found},
            },
            "patch": {
                "summary": "Update note text",
                "parameters": _id_param("id"),
                "requestBody": _body("NoteIn"),
                "responses": {
                    "200": {"description": "OK", "content": {"application/json": {"schema": _with_changes("note", "NoteOut")}}},
                    "404": not_found,
                    "503": unsaved,
                },
            },
            "delete": {
                "summary": "Delete note",
                "parameters": _id_param("id"),
                "responses": {"200": {"description": "Deleted"}, "404": not_found, "503": unsaved},
            },
        },
    )

    return spec.to_dict()
