import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import asc, desc, select

from notekeeper.common.clock import as_naive_utc
from notekeeper.notebooks.models import Notebook
from notekeeper.notes.models import Note


@dataclass(frozen=True)
class Scope:
    """Tous les carnets (``notebook_id`` à None) ou les notes d'un carnet."""

    notebook_id: uuid.UUID | None = None
    newest_first: bool = True

    @classmethod
    def notebooks(cls) -> "Scope":
        return cls(notebook_id=None, newest_first=True)

    @classmethod
    def notes(cls, notebook_id: uuid.UUID, newest_first: bool = True) -> "Scope":
        return cls(notebook_id=notebook_id, newest_first=newest_first)

    @property
    def model(self) -> type:
        return Notebook if self.notebook_id is None else Note

    def includes(self, record: Any) -> bool:
        if self.notebook_id is None:
            return isinstance(record, Notebook)
        return isinstance(record, Note) and record.notebook_id == self.notebook_id

    def sort_key(self, record: Any) -> tuple:
        # même ordre que build_query : date de création puis id
        return (as_naive_utc(record.creation_date), str(record.id))

    def to_dict(self) -> dict[str, Any]:
        return {
            "notebook_id": str(self.notebook_id) if self.notebook_id else None,
            "newest_first": self.newest_first,
        }


def build_query(scope: Scope):
    model = scope.model
    stmt = select(model)
    if scope.notebook_id is not None:
        stmt = stmt.where(Note.notebook_id == scope.notebook_id)
    direction = desc if scope.newest_first else asc
    return stmt.order_by(direction(model.creation_date), direction(model.id))
