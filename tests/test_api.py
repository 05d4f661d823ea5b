from decimal import Decimal
import uuid

import pytest
import sqlalchemy as sa

from fundtransfer.api import TransferRequest, create_app
from fundtransfer.models import AccountId
from fundtransfer.persistence import SqlBankingRepository, accounts, create_schema
from fundtransfer.transfer import TransferUseCase


@pytest.fixture
def engine(tmp_path):
    eng = sa.create_engine(f"sqlite:///{tmp_path / 'bank.db'}")
    create_schema(eng)
    yield eng
    eng.dispose()


def seed(engine, owner, balance):
    account_id = AccountId.new()
    with engine.begin() as conn:
        conn.execute(
            sa.insert(accounts).values(
                id=account_id.value, owner_name=owner, balance=Decimal(balance), version=1
            )
        )
    return account_id


def balance_of(engine, account_id):
    with engine.connect() as conn:
        return conn.execute(
            sa.select(accounts.c.balance).where(accounts.c.id == account_id.value)
        ).scalar_one()


@pytest.fixture
def setup(engine):
    adam = seed(engine, "Adam Test", 1000000)
    budi = seed(engine, "Budi Test", 0)
    app = create_app(TransferUseCase(SqlBankingRepository(engine)))
    return app.test_client(), adam, budi


def body(from_id, to_id, amount):
    return {"from_account": str(from_id), "to_account": str(to_id), "amount": amount}


def test_successful_transfer(engine, setup):
    client, adam, budi = setup
    resp = client.post(
        "/transfer", json=body(adam, budi, 50000), headers={"X-Idempotency-Key": "key-1"}
    )
    assert resp.status_code == 200
    assert resp.get_json() == "Transfer Successful"
    assert balance_of(engine, adam) == Decimal(950000)
    assert balance_of(engine, budi) == Decimal(50000)


def test_missing_idempotency_header(engine, setup):
    client, adam, budi = setup
    resp = client.post("/transfer", json=body(adam, budi, 50000))
    assert resp.status_code == 500
    assert resp.get_data(as_text=True) == "Missing header: X-Idempotency-Key"
    assert balance_of(engine, adam) == Decimal(1000000)


def test_insufficient_funds_reported(engine, setup):
    client, adam, budi = setup
    resp = client.post(
        "/transfer", json=body(adam, budi, 5000000), headers={"X-Idempotency-Key": "key-2"}
    )
    assert resp.status_code == 500
    assert resp.get_data(as_text=True) == "Transfer Failed: Insufficient funds"
    assert balance_of(engine, adam) == Decimal(1000000)


def test_unknown_account_reported(setup):
    client, adam, _ = setup
    missing = uuid.uuid4()
    resp = client.post(
        "/transfer", json=body(adam, missing, 10), headers={"X-Idempotency-Key": "key-3"}
    )
    assert resp.status_code == 500
    assert resp.get_data(as_text=True) == f"Transfer Failed: Account not found with ID: {missing}"


def test_retry_with_same_key_moves_money_once(engine, setup):
    client, adam, budi = setup
    headers = {"X-Idempotency-Key": "key-unik-123"}
    first = client.post("/transfer", json=body(adam, budi, 100000), headers=headers)
    second = client.post("/transfer", json=body(adam, budi, 100000), headers=headers)
    assert first.get_json() == second.get_json() == "Transfer Successful"
    assert balance_of(engine, adam) == Decimal(900000)


def test_decimal_amount_in_body_is_exact(engine, setup):
    client, adam, budi = setup
    resp = client.post(
        "/transfer",
        data=f'{{"from_account": "{adam}", "to_account": "{budi}", "amount": 0.25}}',
        content_type="application/json",
        headers={"X-Idempotency-Key": "key-dec"},
    )
    assert resp.get_json() == "Transfer Successful"
    assert balance_of(engine, budi) == Decimal("0.25")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"data": "not json", "content_type": "text/plain"},
        {"data": "{not json", "content_type": "application/json"},
        {"json": {"from_account": "x"}},
    ],
)
def test_malformed_requests_are_client_errors(engine, setup, kwargs):
    client, adam, _ = setup
    resp = client.post("/transfer", headers={"X-Idempotency-Key": "key-bad"}, **kwargs)
    assert 400 <= resp.status_code < 500
    assert balance_of(engine, adam) == Decimal(1000000)


def test_from_json_parses_fields():
    a, b = uuid.uuid4(), uuid.uuid4()
    req = TransferRequest.from_json({"from_account": str(a), "to_account": str(b), "amount": "12.50"})
    assert req.from_account == a
    assert req.to_account == b
    assert req.amount == Decimal("12.50")


def test_from_json_accepts_float_and_int():
    a, b = uuid.uuid4(), uuid.uuid4()
    assert TransferRequest.from_json(body(a, b, 1.5)).amount == Decimal("1.5")
    assert TransferRequest.from_json(body(a, b, 7)).amount == Decimal(7)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"to_account": str(uuid.uuid4()), "amount": 1},
        {"from_account": "nope", "to_account": str(uuid.uuid4()), "amount": 1},
        {"from_account": str(uuid.uuid4()), "to_account": str(uuid.uuid4()), "amount": True},
        {"from_account": str(uuid.uuid4()), "to_account": str(uuid.uuid4()), "amount": "NaN"},
        {"from_account": str(uuid.uuid4()), "to_account": str(uuid.uuid4()), "amount": "abc"},
    ],
)
def test_from_json_rejects_bad_payloads(payload):
    with pytest.raises(ValueError):
        TransferRequest.from_json(payload)