import enum
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


class ChangeKind(str, enum.Enum):
    INSERT = "insert"
    DELETE = "delete"
    UPDATE = "update"
    MOVE = "move"


@dataclass(frozen=True)
class Change:
    """Patch d'une ligne; ``to_position`` ne sert qu'aux déplacements."""

    kind: ChangeKind
    position: int
    to_position: int | None = None


@dataclass
class ChangeBatch:
    """Patches d'une vue, appliqués en une seule mise à jour visuelle."""

    scope: Any
    changes: list[Change] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.changes)

    def __len__(self) -> int:
        return len(self.changes)


@runtime_checkable
class DisplayListener(Protocol):
    """Reçoit les batches d'une vue entre les marqueurs begin/end."""

    def begin_updates(self, view: Any) -> None:
        ...

    def apply(self, view: Any, change: Change) -> None:
        ...

    def end_updates(self, view: Any) -> None:
        ...


class BatchCollector:
    """Listener qui reconstruit les batches reçus (utilisé par les routes)."""

    def __init__(self):
        self.batches: list[ChangeBatch] = []
        self._current: ChangeBatch | None = None

    def begin_updates(self, view):
        self._current = ChangeBatch(view.scope)

    def apply(self, view, change):
        self._current.changes.append(change)

    def end_updates(self, view):
        self.batches.append(self._current)
        self._current = None
