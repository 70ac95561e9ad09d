import threading
from collections import OrderedDict
from contextlib import contextmanager

from flask import current_app

from notekeeper.sync.changes import BatchCollector
from notekeeper.sync.view import OrderedListView


class ViewRegistry:
    """Vues ouvertes, indexées par scope.

    ``lock`` sérialise toutes les opérations du service (un seul écrivain).
    La registry écoute chaque vue qu'elle ouvre et relaie les batches aux
    collecteurs actifs sur le thread courant. Au-delà de ``max_notes_views``
    vues de notes, la moins récemment ouverte est fermée.
    """

    def __init__(self, max_notes_views=32):
        self.lock = threading.RLock()
        self.max_notes_views = max_notes_views
        self._views = OrderedDict()
        self._local = threading.local()

    def __len__(self):
        return len(self._views)

    def __iter__(self):
        return iter(list(self._views.values()))

    def open(self, scope) -> OrderedListView:
        with self.lock:
            view = self._views.get(scope)
            if view is None:
                view = OrderedListView(scope)
                view.subscribe(self)
                self._views[scope] = view
            self._views.move_to_end(scope)
            self._evict_idle_notes_views()
            return view

    def _evict_idle_notes_views(self):
        notes_scopes = [s for s in self._views if s.notebook_id is not None]
        # les plus anciennes d'abord (ordre d'ouverture)
        for scope in notes_scopes[:max(len(notes_scopes) - self.max_notes_views, 0)]:
            self.close(scope)

    def get(self, scope) -> OrderedListView | None:
        return self._views.get(scope)

    def close(self, scope) -> None:
        with self.lock:
            view = self._views.pop(scope, None)
            if view is not None:
                view.unsubscribe(self)

    def including(self, record) -> list[OrderedListView]:
        return [v for v in self._views.values() if v.scope.includes(record)]

    def notebooks_views(self) -> list[OrderedListView]:
        return [v for v in self._views.values() if v.scope.notebook_id is None]

    def notes_views(self, notebook_id) -> list[OrderedListView]:
        return [v for v in self._views.values() if v.scope.notebook_id == notebook_id]

    # --- collecte des batches (thread courant)

    def _collectors(self) -> list:
        if not hasattr(self._local, "collectors"):
            self._local.collectors = []
        return self._local.collectors

    @contextmanager
    def collect(self):
        collector = BatchCollector()
        self._collectors().append(collector)
        try:
            yield collector.batches
        finally:
            self._collectors().remove(collector)

    def begin_updates(self, view):
        for collector in self._collectors():
            collector.begin_updates(view)

    def apply(self, view, change):
        for collector in self._collectors():
            collector.apply(view, change)

    def end_updates(self, view):
        for collector in self._collectors():
            collector.end_updates(view)


def current_views() -> ViewRegistry:
    return current_app.extensions["list_views"]
