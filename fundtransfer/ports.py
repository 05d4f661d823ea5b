"""Abstract storage interfaces used by the transfer service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from types import TracebackType

from .models import Account, AccountId

__all__ = ["BankingRepository", "TransactionPort"]


class TransactionPort(ABC):
    """A unit of work against the banking store.

    Used as a context manager: leaving the block rolls back anything not
    committed. Implementations must treat ``rollback`` after ``commit`` as a
    no-op.
    """

    @abstractmethod
    def get_account_for_update(self, account_id: AccountId) -> Account:
        """Load an account and lock it for the rest of the transaction."""

    @abstractmethod
    def update_account(self, account: Account) -> None:
        """Persist the account's balance and bump its version."""

    @abstractmethod
    def save_transaction_log(
        self, from_id: AccountId, to_id: AccountId, amount: Decimal
    ) -> None:
        """Record a transfer in the audit trail."""

    @abstractmethod
    def get_idempotency_key(self, key: str) -> str | None:
        """Return the stored response body for ``key``, if any."""

    @abstractmethod
    def save_idempotency_key(self, key: str, status: int, body: str) -> None:
        """Store the response for ``key``."""

    @abstractmethod
    def commit(self) -> None:
        """Make the transaction's changes permanent."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard the transaction's changes."""

    def __enter__(self) -> TransactionPort:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.rollback()


class BankingRepository(ABC):
    """Factory of transactions against the banking store."""

    @abstractmethod
    def begin_tx(self) -> TransactionPort:
        """Start a new transaction."""