"""
Transaction executor: commit/rollback boundary around a unit of work.

The caller hands over a zero-argument callable; the executor owns the
session transaction for the duration of the call and the caller never
touches it directly:

    executor = TransactionExecutor(session)
    executor.execute_transaction(lambda: teachers.add(teacher))

States: IDLE -> ACTIVE -> (COMMITTED | ROLLED_BACK) -> IDLE.

A nested execute_transaction on the same executor joins the ambient scope:
the inner unit runs without committing, and the outermost call decides the
outcome for everything issued inside it.
"""

import logging
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from schoolhub.core.db import is_timeout_error
from schoolhub.core.errors import StorageFailureError, StorageTimeoutError
from schoolhub.core.observability import metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

UnitOfWork = Callable[[], T]


class TransactionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionExecutor:
    """Runs units of work so that all of their mutations commit, or none do."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._state = TransactionState.IDLE
        self._last_outcome: TransactionState | None = None

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def last_outcome(self) -> TransactionState | None:
        """COMMITTED or ROLLED_BACK for the most recent scope, None before any."""
        return self._last_outcome

    def execute_transaction(self, unit_of_work: UnitOfWork[T]) -> T:
        """
        Run unit_of_work inside a transaction scope.

        Commits on normal return and returns the unit's result. On any
        exception the scope is rolled back and the exception is re-raised
        unchanged. A commit rejected by the database is reported as
        StorageFailureError after the rollback.

        Args:
            unit_of_work: Zero-argument callable issuing repository calls

        Returns:
            Whatever unit_of_work returns
        """
        if self._state is TransactionState.ACTIVE:
            logger.debug("Joining ambient transaction scope")
            return unit_of_work()

        self._state = TransactionState.ACTIVE
        try:
            result = unit_of_work()
            self._commit()
        except Exception as exc:
            self._rollback(exc)
            self._finish(TransactionState.ROLLED_BACK)
            raise
        self._finish(TransactionState.COMMITTED)
        return result

    def _commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            details = {"error_type": type(exc).__name__}
            if is_timeout_error(exc):
                raise StorageTimeoutError("Commit timed out", details=details) from exc
            raise StorageFailureError("Commit failed", details=details) from exc
        logger.debug("Transaction committed")

    def _rollback(self, cause: Exception) -> None:
        try:
            self._session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")
        logger.warning(
            f"Transaction rolled back: {type(cause).__name__}: {cause}",
            extra={"error_type": type(cause).__name__},
        )

    def _finish(self, outcome: TransactionState) -> None:
        self._last_outcome = outcome
        self._state = TransactionState.IDLE
        metrics.transactions_total.labels(outcome=outcome.value).inc()
