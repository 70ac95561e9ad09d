from marshmallow import Schema, fields, validate

class NotebookIn(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=200))

class NotebookOut(Schema):
    id = fields.UUID(required=True)
    name = fields.String(required=True)
    creation_date = fields.DateTime(required=True)
    page_count = fields.Integer(required=True)
    page_label = fields.String(required=True)

class ScopeOut(Schema):
    notebook_id = fields.UUID(allow_none=True)
    newest_first = fields.Boolean()

class ChangeOut(Schema):
    op = fields.Function(lambda change: change.kind.value)
    position = fields.Integer()
    to_position = fields.Integer(allow_none=True)

class ChangeBatchOut(Schema):
    scope = fields.Nested(ScopeOut)
    changes = fields.List(fields.Nested(ChangeOut))
