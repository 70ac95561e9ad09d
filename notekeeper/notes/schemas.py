from marshmallow import Schema, fields, validate

class NoteCreateIn(Schema):
    # texte facultatif : "New Note" par défaut
    text = fields.String(load_default=None, validate=validate.Length(max=100000))

class NoteIn(Schema):
    text = fields.String(required=True, validate=validate.Length(max=100000))

class NoteOut(Schema):
    id = fields.UUID(required=True)
    notebook_id = fields.UUID(required=True)
    text = fields.String(required=True)
    creation_date = fields.DateTime(required=True)
