"""
Production entrypoint.

Run with: uvicorn main:app

Secrets come from Vault; tunables from WORKSESSION_* environment variables,
optionally loaded from a .env file.
"""

import logging
import os

from dotenv import load_dotenv

from api.app import build_services, create_app
from clients import PostgresClient, ValkeyClient, get_database_url, get_valkey_url
from core.audit import AuditLogger
from core.config import WorkSessionConfig
from core.locking import ValkeyLock
from core.repositories import PostgresLedgerRepository, PostgresSessionRepository

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

config = WorkSessionConfig.from_env()

postgres = PostgresClient(get_database_url())
locks = ValkeyLock(
    ValkeyClient(get_valkey_url()),
    ttl_seconds=config.lock_ttl_seconds,
    timeout_seconds=config.lock_timeout_seconds,
)

services = build_services(
    PostgresLedgerRepository(postgres),
    PostgresSessionRepository(postgres),
    AuditLogger(postgres),
    config,
    locks=locks,
)

app = create_app(services, config)
