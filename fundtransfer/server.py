"""Application assembly and the command that serves it."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Sequence
from typing import Any

import sqlalchemy as sa
from dotenv import find_dotenv, load_dotenv
from flask import Flask
from sqlalchemy.engine import make_url

from .api import create_app
from .persistence import SqlBankingRepository
from .transfer import TransferUseCase

__all__ = ["build_app", "main"]

log = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3003
MAX_CONNECTIONS = 10


def build_app(database_url: str) -> Flask:
    """Connect to the database and wire repository, service and web app together."""
    url = make_url(database_url)
    options: dict[str, Any] = {}
    if url.get_backend_name() != "sqlite":
        options = {"pool_size": MAX_CONNECTIONS, "max_overflow": 0}
    engine = sa.create_engine(url, **options)
    with engine.connect():
        pass
    log.info("Database connected successfully.")

    repo = SqlBankingRepository(engine)
    service = TransferUseCase(repo)
    return create_app(service)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the transfer server."""
    load_dotenv(find_dotenv(usecwd=True))
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(prog="fundtransfer", description="Run the banking transfer server.")
    parser.add_argument("--database-url", default=os.environ.get("DATABASE_URL"))
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    if not args.database_url:
        parser.error("DATABASE_URL not set")

    print("Starting Banking System...")
    app = build_app(args.database_url)
    print("Database connected successfully.")
    print(f"Server listening on port {args.port}")
    app.run(host=args.host, port=args.port)
    return 0