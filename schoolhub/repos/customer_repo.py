"""Repository for Customer records."""

import logging

from schoolhub.db.models import Customer
from schoolhub.repos.generic_repo import Repository

logger = logging.getLogger(__name__)


class CustomerRepository(Repository[Customer]):
    model = Customer
    name_field = "full_name"

    def get_by_branch(self, branch_id: str) -> list[Customer]:
        """Return the customers attached to a branch."""
        return self.get_list(lambda c: c.branch_id == branch_id)

    def detach_branch(self, branch_id: str) -> int:
        """
        Clear branch_id on every customer attached to the branch.

        Used before deleting a branch so no customer keeps a dangling reference.

        Returns:
            Number of customers detached
        """
        detached = self.store.update_fields(lambda c: c.branch_id == branch_id, branch_id=None)
        if detached:
            logger.info(
                f"Detached {detached} customers from branch {branch_id}",
                extra={"branch_id": branch_id, "count": detached},
            )
        return detached
