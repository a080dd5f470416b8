"""
Entity store: predicate-based persistence over one mapped entity type.

The store is the only layer that talks to the SQLAlchemy session. It never
commits; transaction boundaries belong to the TransactionExecutor.

Predicates are callables that receive the mapped class and return a
SQLAlchemy boolean clause, for example::

    store.get_list(lambda t: t.full_name.icontains("ali"))
    store.delete(lambda t: t.id == teacher_id)
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, delete, inspect, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from schoolhub.core.errors import (
    DuplicateKeyError,
    ReferentialViolationError,
    SchoolHubError,
    StorageFailureError,
    StorageTimeoutError,
)
from schoolhub.core.db import is_timeout_error
from schoolhub.core.observability import db_metrics
from schoolhub.db.models import Base, new_entity_id

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

Predicate = Callable[[type[ModelT]], ColumnElement[bool]]


def translate_integrity_error(table: str, exc: IntegrityError) -> SchoolHubError:
    """Classify an IntegrityError raised by the driver into a domain error."""
    text = str(exc.orig).lower()
    if "foreign key" in text:
        return ReferentialViolationError(
            f"A referenced record does not exist for '{table}'",
            details={"table": table},
        )
    if "unique" in text or "duplicate" in text or "primary key" in text:
        return DuplicateKeyError(
            f"A record with the same key already exists in '{table}'",
            details={"table": table},
        )
    return StorageFailureError(
        f"Constraint violation in '{table}'",
        details={"table": table},
    )


class EntityStore(Generic[ModelT]):
    """Typed CRUD and predicate queries for a single mapped class."""

    def __init__(self, session: Session, model: type[ModelT]) -> None:
        self.session = session
        self.model = model
        self._table = model.__tablename__
        mapper = inspect(model)
        self._pk_column = mapper.primary_key[0]
        self._value_keys = tuple(
            attr.key
            for attr in mapper.column_attrs
            if not any(column.primary_key for column in attr.columns)
        )

    @contextmanager
    def _storage_call(self, operation: str) -> Iterator[None]:
        with db_metrics.track(self._table, operation):
            try:
                yield
            except IntegrityError as exc:
                raise translate_integrity_error(self._table, exc) from exc
            except SQLAlchemyError as exc:
                if is_timeout_error(exc):
                    logger.warning(
                        f"Storage timeout during {operation} on {self._table}: {exc}",
                        extra={"table": self._table, "operation": operation},
                    )
                    raise StorageTimeoutError(
                        f"The {operation} operation on '{self._table}' timed out",
                        details={"table": self._table, "operation": operation},
                    ) from exc
                logger.error(
                    f"Storage failure during {operation} on {self._table}: {exc}",
                    extra={"table": self._table, "operation": operation},
                )
                raise StorageFailureError(
                    f"Storage failure during {operation} on '{self._table}'",
                    details={"table": self._table, "operation": operation},
                ) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self) -> list[ModelT]:
        """Return every record in storage order."""
        with self._storage_call("get_all"):
            records = list(self.session.scalars(select(self.model)).all())
        logger.debug(f"Retrieved {len(records)} {self._table}")
        return records

    def get_list(self, predicate: Predicate) -> list[ModelT]:
        """Return all records matching the predicate; empty when none match."""
        with self._storage_call("get_list"):
            stmt = select(self.model).where(predicate(self.model))
            records = list(self.session.scalars(stmt).all())
        logger.debug(f"Matched {len(records)} {self._table}")
        return records

    def get_by_id(self, entity_id: Any) -> ModelT | None:
        """Point lookup by primary key; None when the id is unknown or empty."""
        if entity_id is None or entity_id == "":
            return None
        with self._storage_call("get_by_id"):
            return self.session.get(self.model, str(entity_id))

    def get_ids(self) -> set[str]:
        """Return the primary keys of every record without loading the rows."""
        with self._storage_call("get_ids"):
            return set(self.session.scalars(select(self._pk_column)).all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, entity: ModelT) -> ModelT:
        """
        Add a new record, generating its id when unset.

        Raises:
            DuplicateKeyError: If a record with the same id already exists
            ReferentialViolationError: If a foreign key points nowhere
            StorageFailureError: On any other storage error
        """
        if getattr(entity, "id", None) is None:
            entity.id = new_entity_id()

        with self._storage_call("insert"):
            if self.session.get(self.model, entity.id) is not None:
                raise DuplicateKeyError(
                    f"{self.model.__name__} with id '{entity.id}' already exists",
                    details={"table": self._table, "id": entity.id},
                )
            self.session.add(entity)
            self.session.flush()

        logger.info(
            f"Inserted {self.model.__name__} id={entity.id}",
            extra={"table": self._table, "id": entity.id},
        )
        return entity

    def update(self, entity: ModelT, predicate: Predicate) -> int:
        """
        Copy the entity's non-key column values onto every matching record.

        Returns:
            Number of matched records (0 is a no-op, not an error)
        """
        values = {key: getattr(entity, key) for key in self._value_keys}
        return self.update_fields(predicate, **values)

    def update_fields(self, predicate: Predicate, **values: Any) -> int:
        """Set only the given columns on every matching record."""
        unknown = set(values) - set(self._value_keys)
        if unknown:
            raise ValueError(f"Cannot update {sorted(unknown)} on '{self._table}'")
        stmt = update(self.model).where(predicate(self.model)).values(**values)
        with self._storage_call("update"):
            result = self.session.execute(stmt)
        logger.info(
            f"Updated {result.rowcount} {self._table}",
            extra={"table": self._table, "rowcount": result.rowcount},
        )
        return result.rowcount

    def delete(self, predicate: Predicate) -> int:
        """
        Remove every record matching the predicate.

        Returns:
            Number of removed records (0 is a no-op, not an error)
        """
        stmt = delete(self.model).where(predicate(self.model))
        with self._storage_call("delete"):
            result = self.session.execute(stmt)
        logger.info(
            f"Deleted {result.rowcount} {self._table}",
            extra={"table": self._table, "rowcount": result.rowcount},
        )
        return result.rowcount
