import logging
import uuid
from dataclasses import dataclass
from typing import Callable

from flask import current_app, g

from notekeeper.common.errors import ApiError, PersistenceError, QueryError
from notekeeper.extensions import db
from notekeeper.notebooks.models import Notebook
from notekeeper.notes.models import Note, DEFAULT_TEXT
from notekeeper.store import SqlAlchemyStore, StoreProtocol
from notekeeper.sync.registry import ViewRegistry, current_views
from notekeeper.sync.scope import Scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """Message destiné à l'utilisateur quand une opération échoue."""

    title: str
    message: str
    operation: str

    def to_dict(self) -> dict:
        return {"title": self.title, "message": self.message, "operation": self.operation}


def _log_notice(notice: Notice) -> None:
    logger.warning(
        "user_notice",
        extra={"operation": notice.operation, "notice_title": notice.title},
    )


class NotebookService:
    """CRUD sur les carnets et les notes.

    Chaque mutation réussie réconcilie les vues ouvertes concernées. Un échec
    du store n'est jamais relancé : il devient une ``Notice`` passée à
    ``notify``.
    """

    def __init__(
        self,
        store: StoreProtocol,
        views: ViewRegistry,
        notify: Callable[[Notice], None] = _log_notice,
        default_note_text: str = DEFAULT_TEXT,
        notes_newest_first: bool = True,
    ):
        self.store = store
        self.views = views
        self.notify = notify
        self.default_note_text = default_note_text
        self.notes_newest_first = notes_newest_first

    def _fail(self, operation: str, title: str, message: str) -> None:
        self.notify(Notice(title=title, message=message, operation=operation))

    # --- lecture

    def get_notebook(self, notebook_id: uuid.UUID) -> Notebook:
        notebook = self.store.get(Notebook, notebook_id)
        if not notebook:
            raise ApiError("Notebook not found.", 404, "not_found")
        return notebook

    def get_note(self, note_id: uuid.UUID) -> Note:
        note = self.store.get(Note, note_id)
        if not note:
            raise ApiError("Note not found.", 404, "not_found")
        return note

    def list_notebooks(self):
        return self._activate(Scope.notebooks(), "notebooks")

    def list_notes(self, notebook: Notebook, newest_first: bool | None = None):
        if newest_first is None:
            newest_first = self.notes_newest_first
        return self._activate(Scope.notes(notebook.id, newest_first), "notes")

    def _activate(self, scope: Scope, label: str):
        def on_error(e: QueryError):
            self._fail(
                "query",
                f"Cannot load {label}",
                f"Your {label} cannot be loaded at the moment. Please try again later.",
            )

        with self.views.lock:
            view = self.views.open(scope)
            records = view.reload(self.store, on_error=on_error)
        return view, records

    # --- carnets

    def create_notebook(self, name: str) -> Notebook | None:
        name = (name or "").strip()
        if not name:
            raise ApiError("Notebook name required.", 400, "validation_error")

        with self.views.lock:
            notebook = self.store.insert(Notebook(name=name))
            try:
                self.store.save()
            except PersistenceError:
                self._fail(
                    "create_notebook",
                    "Cannot save notebook",
                    "Your notebook cannot be saved at the moment. Please try again later.",
                )
                return None

            for view in self.views.including(notebook):
                view.insert(notebook)
        logger.info("notebook_created", extra={"notebook_id": str(notebook.id)})
        return notebook

    def rename_notebook(self, notebook: Notebook, name: str) -> bool:
        name = (name or "").strip()
        if not name:
            raise ApiError("Notebook name required.", 400, "validation_error")

        with self.views.lock:
            notebook.name = name
            try:
                self.store.save()
            except PersistenceError:
                # le nouveau nom reste en mémoire
                notebook.name = name
                self._fail(
                    "rename_notebook",
                    "Cannot save notebook",
                    "Your notebook cannot be saved at the moment. Please try again later.",
                )
                return False

            for view in self.views.including(notebook):
                view.refresh(notebook.id)
        logger.info("notebook_renamed", extra={"notebook_id": str(notebook.id)})
        return True

    def delete_notebook(self, notebook: Notebook) -> bool:
        with self.views.lock:
            notebook_id = notebook.id
            views = self.views.including(notebook)
            notes_views = self.views.notes_views(notebook_id)

            self.store.delete(notebook)
            try:
                self.store.save()
            except PersistenceError:
                # la suppression est annulée : les vues reflètent toujours le store
                self._fail(
                    "delete_notebook",
                    "Cannot delete notebook",
                    "Your notebook cannot be deleted at the moment. Please try again later.",
                )
                return False

            for view in views:
                view.remove(notebook_id)
            for view in notes_views:
                view.clear()
                # le carnet n'existe plus : ses vues de notes sont fermées
                self.views.close(view.scope)
        logger.info("notebook_deleted", extra={"notebook_id": str(notebook_id)})
        return True

    # --- notes

    def create_note(self, notebook: Notebook, text: str | None = None) -> Note | None:
        with self.views.lock:
            note = self.store.insert(
                Note(notebook=notebook, text=self.default_note_text if text is None else text)
            )
            try:
                self.store.save()
            except PersistenceError:
                self._fail(
                    "create_note",
                    "Cannot add note",
                    "Your note cannot be added at the moment. Please try again later.",
                )
                return None

            for view in self.views.including(note):
                view.insert(note)
            self._refresh_notebook(note.notebook_id)
        logger.info(
            "note_created",
            extra={"note_id": str(note.id), "notebook_id": str(note.notebook_id)},
        )
        return note

    def update_note_text(self, note: Note, text: str) -> bool:
        with self.views.lock:
            note.text = text
            try:
                self.store.save()
            except PersistenceError:
                # le rollback a expiré la note : on ne perd pas la saisie
                note.text = text
                self._fail(
                    "update_note",
                    "Cannot save note",
                    "Your note cannot be saved at the moment. Please try again later.",
                )
                return False

            for view in self.views.including(note):
                view.refresh(note.id)
        logger.info("note_updated", extra={"note_id": str(note.id)})
        return True

    def delete_note(self, note: Note) -> bool:
        with self.views.lock:
            note_id, notebook_id = note.id, note.notebook_id
            views = self.views.including(note)

            self.store.delete(note)
            try:
                self.store.save()
            except PersistenceError:
                self._fail(
                    "delete_note",
                    "Cannot delete note",
                    "Your note cannot be deleted at the moment. Please try again later.",
                )
                return False

            for view in views:
                view.remove(note_id)
            self._refresh_notebook(notebook_id)
        logger.info(
            "note_deleted",
            extra={"note_id": str(note_id), "notebook_id": str(notebook_id)},
        )
        return True

    def _refresh_notebook(self, notebook_id: uuid.UUID) -> None:
        # le nombre de pages du carnet a changé
        for view in self.views.notebooks_views():
            view.refresh(notebook_id)


def request_service() -> NotebookService:
    """Service lié à la requête courante; les notices vont dans ``g.notices``."""
    if "notices" not in g:
        g.notices = []
    return NotebookService(
        SqlAlchemyStore(db.session),
        current_views(),
        notify=g.notices.append,
        default_note_text=current_app.config.get("DEFAULT_NOTE_TEXT", DEFAULT_TEXT),
        notes_newest_first=current_app.config.get("NOTES_NEWEST_FIRST", True),
    )
