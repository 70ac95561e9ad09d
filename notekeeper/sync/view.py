import logging
from typing import Any, Callable

from notekeeper.common.errors import QueryError
from notekeeper.sync.changes import Change, ChangeBatch, ChangeKind, DisplayListener

logger = logging.getLogger(__name__)


class OrderedListView:
    """Ids des enregistrements d'un scope, dans l'ordre de tri du scope.

    La vue ne garde que les ids et les clés de tri, jamais les objets ORM :
    elle survit donc à la session qui l'a remplie. Chaque mutation passe par
    ``insert``/``remove``/``refresh``/``clear`` (ou ``reload``) et publie un
    batch aux listeners abonnés.
    """

    def __init__(self, scope):
        self.scope = scope
        self._ids: list[Any] = []
        self._keys: list[tuple] = []
        self._listeners: list[DisplayListener] = []

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, record_id) -> bool:
        return record_id in self._ids

    def __repr__(self):
        return f"<OrderedListView {self.scope} ({len(self)} items)>"

    @property
    def ids(self) -> tuple:
        return tuple(self._ids)

    def position_of(self, record_id) -> int | None:
        try:
            return self._ids.index(record_id)
        except ValueError:
            return None

    # --- listeners

    def subscribe(self, listener: DisplayListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: DisplayListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, batch: ChangeBatch) -> ChangeBatch:
        if not batch:
            return batch
        for listener in list(self._listeners):
            listener.begin_updates(self)
            for change in batch.changes:
                listener.apply(self, change)
            listener.end_updates(self)
        return batch

    # --- réconciliation

    def reload(self, store, on_error: Callable[[QueryError], None] | None = None) -> list[Any]:
        """Relance la requête du scope et remplace la séquence.

        Publie les suppressions (anciennes positions, de la fin vers le début)
        puis les insertions (nouvelles positions). Une requête en échec laisse
        la vue vide et l'erreur part dans ``on_error``.
        """
        try:
            records = store.query(self.scope)
        except QueryError as e:
            logger.warning(
                "list_query_failed",
                extra={"scope": self.scope.to_dict(), "error": str(e)},
            )
            if on_error is not None:
                on_error(e)
            records = []

        new_ids = [r.id for r in records]
        if len(set(new_ids)) != len(new_ids):
            raise ValueError(f"duplicate records returned for {self.scope}")
        kept = set(new_ids)
        previous = set(self._ids)

        batch = ChangeBatch(self.scope)
        for position in reversed(range(len(self._ids))):
            if self._ids[position] not in kept:
                batch.changes.append(Change(ChangeKind.DELETE, position))
        for position, record_id in enumerate(new_ids):
            if record_id not in previous:
                batch.changes.append(Change(ChangeKind.INSERT, position))

        self._ids = new_ids
        self._keys = [self.scope.sort_key(r) for r in records]
        self._publish(batch)
        return records

    def insert(self, record) -> Change:
        if not self.scope.includes(record):
            raise ValueError(f"{record!r} is outside {self.scope}")
        if record.id in self._ids:
            raise ValueError(f"{record!r} is already listed")

        key = self.scope.sort_key(record)
        position = self._insert_position(key)
        self._ids.insert(position, record.id)
        self._keys.insert(position, key)

        change = Change(ChangeKind.INSERT, position)
        self._publish(ChangeBatch(self.scope, [change]))
        return change

    def remove(self, record_id) -> Change | None:
        position = self.position_of(record_id)
        if position is None:
            return None
        del self._ids[position]
        del self._keys[position]

        change = Change(ChangeKind.DELETE, position)
        self._publish(ChangeBatch(self.scope, [change]))
        return change

    def refresh(self, record_id) -> Change | None:
        position = self.position_of(record_id)
        if position is None:
            return None
        change = Change(ChangeKind.UPDATE, position)
        self._publish(ChangeBatch(self.scope, [change]))
        return change

    def clear(self) -> list[Change]:
        changes = [Change(ChangeKind.DELETE, p) for p in reversed(range(len(self._ids)))]
        self._ids = []
        self._keys = []
        self._publish(ChangeBatch(self.scope, changes))
        return changes

    def _insert_position(self, key: tuple) -> int:
        lo, hi = 0, len(self._keys)
        while lo < hi:
            mid = (lo + hi) // 2
            before = self._keys[mid] > key if self.scope.newest_first else self._keys[mid] < key
            if before:
                lo = mid + 1
            else:
                hi = mid
        return lo
