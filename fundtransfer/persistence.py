"""SQL storage for accounts, transfer logs and idempotency keys."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Engine

from .models import Account, AccountId
from .ports import BankingRepository, TransactionPort

__all__ = [
    "AccountNotFoundError",
    "ConcurrencyError",
    "metadata",
    "accounts",
    "transaction_logs",
    "idempotency_keys",
    "create_schema",
    "account_from_row",
    "SqlBankingRepository",
    "SqlTransaction",
]


class AccountNotFoundError(LookupError):
    """Raised when an account id does not exist in the store."""


class ConcurrencyError(RuntimeError):
    """Raised when an update touched no row."""


metadata = sa.MetaData()

accounts = sa.Table(
    "accounts",
    metadata,
    sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
    sa.Column("owner_name", sa.String(255), nullable=True),
    sa.Column("balance", sa.Numeric(20, 4), nullable=False),
    sa.Column("currency", sa.String(3), nullable=False, server_default="IDR"),
    sa.Column("version", sa.Integer, nullable=False, server_default="1"),
    sa.Column("updated_at", sa.DateTime, nullable=True),
)

transaction_logs = sa.Table(
    "transaction_logs",
    metadata,
    sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
    sa.Column("from_account_id", sa.Uuid(as_uuid=True), nullable=False),
    sa.Column("to_account_id", sa.Uuid(as_uuid=True), nullable=False),
    sa.Column("amount", sa.Numeric(20, 4), nullable=False),
    sa.Column("created_at", sa.DateTime, nullable=False),
)

idempotency_keys = sa.Table(
    "idempotency_keys",
    metadata,
    sa.Column("idempotency_key", sa.String(255), primary_key=True),
    sa.Column("response_status", sa.SmallInteger, nullable=False),
    sa.Column("response_body", sa.Text, nullable=False),
)


def create_schema(engine: Engine) -> None:
    """Create the tables the repository needs, if they are missing."""
    metadata.create_all(engine)


def account_from_row(row: Any) -> Account:
    """Turn a result row (or mapping) with id, balance and version into an Account."""
    data: Mapping[str, Any] = row._mapping if isinstance(row, sa.Row) else row
    raw_id = data["id"]
    account_uuid = raw_id if isinstance(raw_id, uuid.UUID) else uuid.UUID(str(raw_id))
    raw_balance = data["balance"]
    balance = raw_balance if isinstance(raw_balance, Decimal) else Decimal(str(raw_balance))
    return Account(id=AccountId(account_uuid), balance=balance, version=int(data["version"]))


class SqlTransaction(TransactionPort):
    """A database transaction on one pooled connection."""

    def __init__(self, connection: Connection) -> None:
        self._conn = connection
        self._tx = connection.begin()
        self._finished = False
        if connection.dialect.name == "sqlite":
            # SQLite ignores FOR UPDATE; take the write lock up front instead.
            try:
                connection.exec_driver_sql("BEGIN IMMEDIATE")
            except Exception:
                self._finish(commit=False)
                raise

    def get_account_for_update(self, account_id: AccountId) -> Account:
        stmt = (
            sa.select(accounts.c.id, accounts.c.balance, accounts.c.currency, accounts.c.version)
            .where(accounts.c.id == account_id.value)
            .with_for_update()
        )
        row = self._conn.execute(stmt).first()
        if row is None:
            raise AccountNotFoundError(f"Account not found with ID: {account_id}")
        return account_from_row(row)

    def update_account(self, account: Account) -> None:
        stmt = (
            sa.update(accounts)
            .where(accounts.c.id == account.id.value)
            .values(
                balance=account.balance,
                version=accounts.c.version + 1,
                updated_at=sa.func.now(),
            )
        )
        result = self._conn.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrencyError(
                "Failed to update account. Concurrency error or ID not found."
            )

    def save_transaction_log(
        self, from_id: AccountId, to_id: AccountId, amount: Decimal
    ) -> None:
        self._conn.execute(
            sa.insert(transaction_logs).values(
                id=uuid.uuid4(),
                from_account_id=from_id.value,
                to_account_id=to_id.value,
                amount=amount,
                created_at=sa.func.now(),
            )
        )

    def get_idempotency_key(self, key: str) -> str | None:
        stmt = (
            sa.select(idempotency_keys.c.response_body)
            .where(idempotency_keys.c.idempotency_key == key)
            .with_for_update()
        )
        return self._conn.execute(stmt).scalar_one_or_none()

    def save_idempotency_key(self, key: str, status: int, body: str) -> None:
        self._conn.execute(
            sa.insert(idempotency_keys).values(
                idempotency_key=key, response_status=status, response_body=body
            )
        )

    def commit(self) -> None:
        if self._finished:
            raise RuntimeError("transaction already finished")
        self._finish(commit=True)

    def rollback(self) -> None:
        if not self._finished:
            self._finish(commit=False)

    def _finish(self, *, commit: bool) -> None:
        self._finished = True
        try:
            if commit:
                self._tx.commit()
            else:
                self._tx.rollback()
        finally:
            self._conn.close()


class SqlBankingRepository(BankingRepository):
    """Repository that opens transactions on a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def begin_tx(self) -> SqlTransaction:
        return SqlTransaction(self._engine.connect())