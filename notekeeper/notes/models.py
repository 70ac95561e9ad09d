import uuid
from sqlalchemy import Uuid, ForeignKey
from sqlalchemy.orm import validates
from notekeeper.extensions import db
from notekeeper.common.clock import creation_timestamp

DEFAULT_TEXT = "New Note"


class Note(db.Model):
    __tablename__ = "notes"

    id = db.Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    text = db.Column(db.Text, nullable=False, default=DEFAULT_TEXT)
    creation_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    notebook_id = db.Column(
        Uuid(as_uuid=True),
        ForeignKey("notebooks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    notebook = db.relationship("Notebook", back_populates="notes")

    def __init__(self, **kwargs):
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("text", DEFAULT_TEXT)
        kwargs.setdefault("creation_date", creation_timestamp())
        super().__init__(**kwargs)
        # notebook_id n'est posé par l'ORM qu'au flush
        if self.notebook is not None and self.notebook_id is None:
            self.notebook_id = self.notebook.id

    @validates("creation_date")
    def _freeze_creation_date(self, key, value):
        if self.creation_date is not None and value != self.creation_date:
            raise ValueError("creation_date cannot change once set")
        return value

    def __repr__(self):
        return f"<Note {self.id}: {self.text[:30]}>"
