"""
Generic repository: one CRUD façade, specialized per entity type.

Concrete repositories only declare the mapped class and the column used
for name searches:

    class BranchRepository(Repository[Branch]):
        model = Branch
        name_field = "name"

Repositories are not transactional. Mutations are flushed but never
committed, so several repository calls can be composed inside a single
TransactionExecutor scope.
"""

import logging
from typing import Any, ClassVar, Generic

from sqlalchemy.orm import Session

from schoolhub.repos.store import EntityStore, ModelT, Predicate

logger = logging.getLogger(__name__)


class Repository(Generic[ModelT]):
    """Entity-agnostic CRUD over an EntityStore."""

    model: ClassVar[type]
    name_field: ClassVar[str] = "name"

    def __init__(self, session: Session) -> None:
        self.store: EntityStore[ModelT] = EntityStore(session, self.model)

    @property
    def session(self) -> Session:
        return self.store.session

    # Reads

    def get_all(self) -> list[ModelT]:
        return self.store.get_all()

    def get_list(self, predicate: Predicate) -> list[ModelT]:
        return self.store.get_list(predicate)

    def get_by_id(self, entity_id: Any) -> ModelT | None:
        return self.store.get_by_id(entity_id)

    def get_by_name(self, name: str | None) -> list[ModelT]:
        """
        Case-insensitive substring search over the name field.

        The input is matched as given: LIKE wildcards are literal and
        whitespace is not trimmed, so " " finds names containing a space.
        None or empty input returns an empty list without querying.
        """
        if not name:
            return []
        field = self.name_field
        return self.store.get_list(
            lambda model: getattr(model, field).icontains(name, autoescape=True)
        )

    def get_all_ids(self) -> set[str]:
        """Return every id; used for referential checks from other entities."""
        return self.store.get_ids()

    # Writes

    def add(self, entity: ModelT) -> ModelT:
        return self.store.insert(entity)

    def update_by_id(self, entity: ModelT, entity_id: Any) -> int:
        key = str(entity_id)
        return self.store.update(entity, lambda model: model.id == key)

    def delete_by_id(self, entity_id: Any) -> int:
        key = str(entity_id)
        return self.store.delete(lambda model: model.id == key)
