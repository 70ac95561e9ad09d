import uuid
from sqlalchemy import Uuid
from sqlalchemy.orm import validates
from notekeeper.extensions import db
from notekeeper.common.clock import creation_timestamp


class Notebook(db.Model):
    __tablename__ = "notebooks"

    id = db.Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = db.Column(db.String(200), nullable=False)
    creation_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    # relation vers Note (supprimer un carnet supprime ses notes)
    notes = db.relationship(
        "Note",
        back_populates="notebook",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __init__(self, **kwargs):
        # id & date connus avant le premier flush
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("creation_date", creation_timestamp())
        super().__init__(**kwargs)

    @validates("creation_date")
    def _freeze_creation_date(self, key, value):
        if self.creation_date is not None and value != self.creation_date:
            raise ValueError("creation_date cannot change once set")
        return value

    @property
    def page_count(self) -> int:
        return len(self.notes)

    @property
    def page_label(self) -> str:
        count = self.page_count
        return f"{count} {'page' if count == 1 else 'pages'}"

    def __repr__(self):
        return f"<Notebook {self.id}: {self.name[:30]}>"
