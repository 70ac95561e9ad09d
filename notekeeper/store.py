import logging
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError

from notekeeper.common.errors import PersistenceError, QueryError
from notekeeper.sync.scope import Scope, build_query

logger = logging.getLogger(__name__)


@runtime_checkable
class StoreProtocol(Protocol):
    """Stockage dont dépendent le service et les vues de listes."""

    def query(self, scope: Scope) -> list[Any]:
        ...

    def get(self, model: type, record_id: Any) -> Any | None:
        ...

    def insert(self, record: Any) -> Any:
        ...

    def delete(self, record: Any) -> None:
        ...

    def save(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class SqlAlchemyStore:
    """Store adossé à une session SQLAlchemy (``db.session`` dans l'app)."""

    def __init__(self, session):
        self.session = session

    def query(self, scope: Scope) -> list[Any]:
        try:
            return list(self.session.scalars(build_query(scope)))
        except SQLAlchemyError as e:
            self.session.rollback()
            raise QueryError(str(e)) from e

    def get(self, model: type, record_id: Any) -> Any | None:
        try:
            return self.session.get(model, record_id)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise QueryError(str(e)) from e

    def insert(self, record: Any) -> Any:
        self.session.add(record)
        return record

    def delete(self, record: Any) -> None:
        self.session.delete(record)

    def save(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning("store_save_failed", extra={"error": str(e)})
            raise PersistenceError(str(e)) from e

    def rollback(self) -> None:
        self.session.rollback()
