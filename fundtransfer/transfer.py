"""The money transfer use case."""

from __future__ import annotations

import logging
from decimal import Decimal

from .models import AccountId
from .ports import BankingRepository

__all__ = ["TransferUseCase"]

log = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Transfer Successful"


class TransferUseCase:
    """Moves money between two accounts, at most once per idempotency key."""

    def __init__(self, repo: BankingRepository) -> None:
        self._repo = repo

    def execute(
        self,
        idempotency_key: str,
        from_id: AccountId,
        to_id: AccountId,
        amount: Decimal,
    ) -> str:
        """Transfer ``amount`` and return the response message.

        A repeated key returns the stored response without touching balances.
        """
        with self._repo.begin_tx() as tx:
            previous = tx.get_idempotency_key(idempotency_key)
            if previous is not None:
                log.info("Idempotency hit for key %s; returning stored response", idempotency_key)
                return previous

            # Lock in a fixed order so concurrent transfers cannot deadlock.
            for account_id in sorted((from_id, to_id)):
                tx.get_account_for_update(account_id)

            sender = tx.get_account_for_update(from_id)
            receiver = tx.get_account_for_update(to_id)

            sender.debit(amount)
            receiver.credit(amount)

            tx.update_account(sender)
            tx.update_account(receiver)
            tx.save_transaction_log(from_id, to_id, amount)
            tx.save_idempotency_key(idempotency_key, 200, SUCCESS_MESSAGE)
            tx.commit()

        return SUCCESS_MESSAGE