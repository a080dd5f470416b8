"""Repository for Teacher records."""

import logging

from schoolhub.db.models import Teacher
from schoolhub.repos.generic_repo import Repository

logger = logging.getLogger(__name__)


class TeacherRepository(Repository[Teacher]):
    model = Teacher
    name_field = "full_name"

    def get_by_customer(self, customer_id: str) -> list[Teacher]:
        """Return the teachers assigned to a customer."""
        return self.get_list(lambda t: t.customer_id == customer_id)

    def detach_customer(self, customer_id: str) -> int:
        """
        Clear customer_id on every teacher assigned to the customer.

        Returns:
            Number of teachers detached
        """
        detached = self.store.update_fields(
            lambda t: t.customer_id == customer_id, customer_id=None
        )
        if detached:
            logger.info(
                f"Detached {detached} teachers from customer {customer_id}",
                extra={"customer_id": customer_id, "count": detached},
            )
        return detached
