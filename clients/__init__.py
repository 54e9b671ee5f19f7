# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_valkey_url,
)
from clients.postgres_client import PostgresClient, Transaction
from clients.valkey_client import ValkeyClient
