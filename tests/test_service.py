# tests/test_service.py
import random
import uuid

import pytest

from notekeeper.common.errors import ApiError
from notekeeper.extensions import db
from notekeeper.notebooks.models import Notebook
from notekeeper.notes.models import Note
from notekeeper.sync.changes import Change, ChangeKind
from notekeeper.sync.scope import Scope

from tests.fakes import RecordingListener


def _texts(records):
    return [r.text for r in records]


def test_create_notebook_shows_up_in_list(service):
    notebook = service.create_notebook("Work")

    view, notebooks = service.list_notebooks()

    assert [nb.name for nb in notebooks] == ["Work"]
    assert view.ids == (notebook.id,)
    assert notebooks[0].page_count == 0


def test_create_notebook_requires_a_name(service):
    with pytest.raises(ApiError) as exc:
        service.create_notebook("   ")
    assert exc.value.status_code == 400
    assert db.session.query(Notebook).count() == 0


def test_notes_are_listed_by_creation_date(service):
    work = service.create_notebook("Work")
    for text in ("first", "second", "third"):
        service.create_note(work, text=text)

    _, newest = service.list_notes(work, newest_first=True)
    _, oldest = service.list_notes(work, newest_first=False)

    assert _texts(newest) == ["third", "second", "first"]
    assert _texts(oldest) == ["first", "second", "third"]
    assert all(a.creation_date < b.creation_date for a, b in zip(oldest, oldest[1:]))


def test_create_note_uses_default_text(service):
    work = service.create_notebook("Work")
    note = service.create_note(work)
    assert note.text == "New Note"
    assert note.notebook_id == work.id


def test_mutations_patch_open_views(service, views):
    work = service.create_notebook("Work")
    notebooks_view, _ = service.list_notebooks()
    notes_view, _ = service.list_notes(work)

    with views.collect() as batches:
        note = service.create_note(work)

    assert notes_view.ids == (note.id,)
    assert [(b.scope, b.changes) for b in batches] == [
        (Scope.notes(work.id), [Change(ChangeKind.INSERT, 0)]),
        (Scope.notebooks(), [Change(ChangeKind.UPDATE, 0)]),
    ]

    with views.collect() as batches:
        service.update_note_text(note, "edited")
        service.rename_notebook(work, "Office")

    assert [b.changes for b in batches] == [
        [Change(ChangeKind.UPDATE, 0)],
        [Change(ChangeKind.UPDATE, 0)],
    ]
    assert notebooks_view.ids == (work.id,)


def test_delete_middle_note_keeps_relative_order(service):
    work = service.create_notebook("Work")
    notes = [service.create_note(work, text=t) for t in ("n1", "n2", "n3")]
    view, _ = service.list_notes(work)

    assert service.delete_note(notes[1]) is True

    _, remaining = service.list_notes(work)
    assert _texts(remaining) == ["n3", "n1"]
    assert view.ids == (notes[2].id, notes[0].id)
    assert service.get_notebook(work.id).page_label == "2 pages"


def test_delete_notebook_cascades_to_notes(service, views):
    work = service.create_notebook("Work")
    home = service.create_notebook("Home")
    for _ in range(3):
        service.create_note(work)
    service.create_note(home)
    notebooks_view, _ = service.list_notebooks()
    notes_view, _ = service.list_notes(work)
    assert len(notes_view) == 3
    work_id = work.id

    assert service.delete_notebook(work) is True

    assert len(notes_view) == 0
    assert notebooks_view.ids == (home.id,)
    assert views.get(notes_view.scope) is None
    assert len(views) == 1
    assert db.session.query(Note).filter_by(notebook_id=work_id).count() == 0
    assert db.session.query(Note).count() == 1
    with pytest.raises(ApiError):
        service.get_notebook(work_id)


def test_updated_text_is_persisted(service):
    work = service.create_notebook("Work")
    note = service.create_note(work)

    assert service.update_note_text(note, "Buy milk") is True

    db.session.expire_all()
    assert service.get_note(note.id).text == "Buy milk"


def test_failed_note_creation_is_discarded(service, store, notices):
    work = service.create_notebook("Work")
    view, _ = service.list_notes(work)

    store.failing = True
    assert service.create_note(work) is None
    store.failing = False

    _, notes = service.list_notes(work)
    assert notes == []
    assert len(view) == 0
    assert [n.title for n in notices] == ["Cannot add note"]


def test_failed_notebook_creation_is_discarded(service, store, notices):
    view, _ = service.list_notebooks()

    store.failing = True
    assert service.create_notebook("Work") is None
    store.failing = False

    assert db.session.query(Notebook).count() == 0
    assert len(view) == 0
    assert notices[0].operation == "create_notebook"


def test_failed_text_update_keeps_the_edit_in_memory(service, store, notices):
    work = service.create_notebook("Work")
    note = service.create_note(work, text="draft")

    store.failing = True
    assert service.update_note_text(note, "final") is False

    assert note.text == "final"
    assert notices[0].title == "Cannot save note"


def test_failed_rename_keeps_the_name_in_memory(service, store, notices):
    work = service.create_notebook("Work")
    view, _ = service.list_notebooks()
    listener = RecordingListener()
    view.subscribe(listener)

    store.failing = True
    assert service.rename_notebook(work, "Office") is False

    assert work.name == "Office"
    assert notices[0].title == "Cannot save notebook"
    assert notices[0].operation == "rename_notebook"
    assert view.ids == (work.id,)
    assert listener.events == []


def test_failed_delete_leaves_store_and_views_unchanged(service, store, notices):
    work = service.create_notebook("Work")
    note = service.create_note(work)
    notes_view, _ = service.list_notes(work)
    notebooks_view, _ = service.list_notebooks()

    store.failing = True
    assert service.delete_note(note) is False
    assert service.delete_notebook(work) is False
    store.failing = False

    assert notes_view.ids == (note.id,)
    assert notebooks_view.ids == (work.id,)
    assert db.session.get(Note, note.id) is not None
    assert [n.title for n in notices] == ["Cannot delete note", "Cannot delete notebook"]


def test_failed_query_lists_nothing_and_notifies(service, store, notices):
    service.create_notebook("Work")

    store.query_failing = True
    view, notebooks = service.list_notebooks()

    assert notebooks == []
    assert len(view) == 0
    assert notices[0].title == "Cannot load notebooks"


def test_unknown_ids_are_not_found(service):
    with pytest.raises(ApiError) as exc:
        service.get_note(uuid.uuid4())
    assert exc.value.code == "not_found"


def test_views_match_store_after_random_mutations(service, store):
    rng = random.Random(7)
    work = service.create_notebook("Work")
    notebooks_view, _ = service.list_notebooks()
    notes_view, _ = service.list_notes(work)
    notes_scope = notes_view.scope

    for _ in range(40):
        notes = store.query(notes_scope)
        notebooks = store.query(Scope.notebooks())
        roll = rng.random()
        if roll < 0.45:
            service.create_note(work)
        elif roll < 0.7 and notes:
            service.delete_note(rng.choice(notes))
        elif roll < 0.85:
            service.create_notebook(f"nb-{rng.randint(0, 999)}")
        elif len(notebooks) > 1:
            victim = rng.choice([nb for nb in notebooks if nb.id != work.id])
            service.delete_notebook(victim)

        assert notes_view.ids == tuple(n.id for n in store.query(notes_scope))
        assert notebooks_view.ids == tuple(nb.id for nb in store.query(Scope.notebooks()))
