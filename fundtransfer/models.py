"""Domain model: accounts and the balance rules that govern them."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal

__all__ = ["DomainError", "AccountId", "Account"]


class DomainError(ValueError):
    """Raised when an operation breaks a business rule."""


@dataclass(frozen=True, order=True)
class AccountId:
    """Identifier of an account, ordered by the underlying UUID."""

    value: uuid.UUID

    @classmethod
    def new(cls) -> AccountId:
        """Return a fresh random identifier."""
        return cls(uuid.uuid4())

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class Account:
    """A bank account with a balance and an optimistic-lock version."""

    id: AccountId
    balance: Decimal
    version: int = 1

    def debit(self, amount: Decimal) -> None:
        """Take ``amount`` out of the balance."""
        if amount <= 0:
            raise DomainError("Amount must be positive")
        if self.balance < amount:
            raise DomainError("Insufficient funds")
        self.balance -= amount

    def credit(self, amount: Decimal) -> None:
        """Add ``amount`` to the balance."""
        if amount <= 0:
            raise DomainError("Amount must be positive")
        self.balance += amount