# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_backend_url,
    get_valkey_url,
)
from clients.valkey_client import ValkeyClient
