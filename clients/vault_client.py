"""
Secrets from HashiCorp Vault (KV v2, AppRole login).

Every path is read under materials/, and each secret is fetched once per
process. Missing configuration or access stops startup; the service has
no defaults for any of these values.
"""

import os
import logging
from typing import Dict

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

_SECRET_PREFIX = "materials"

# Process-wide client and {path: secret data} cache
_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, Dict[str, str]] = {}


class VaultError(Exception):
    """Secrets are unreachable. Fatal at startup."""


class VaultClient:
    """AppRole-authenticated KV v2 reader confined to materials/."""

    def __init__(self, vault_addr: str | None = None, vault_namespace: str | None = None):
        """
        Read VAULT_ADDR, VAULT_ROLE_ID, VAULT_SECRET_ID (and optionally
        VAULT_NAMESPACE) from the environment and log in.

        Raises:
            ValueError: If a required variable is unset
            VaultError: If login fails
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")

        role_id = os.getenv("VAULT_ROLE_ID")
        secret_id = os.getenv("VAULT_SECRET_ID")
        if not role_id or not secret_id:
            raise ValueError("VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required")

        namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        self.client = hvac.Client(url=self.vault_addr, namespace=namespace) if namespace \
            else hvac.Client(url=self.vault_addr)

        try:
            login = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        except (Unauthorized, Forbidden, InvalidPath) as e:
            logger.error(f"Vault AppRole login rejected: {e}")
            raise VaultError(f"AppRole authentication failed: {e}")
        self.client.token = login["auth"]["client_token"]

        if not self.client.is_authenticated():
            raise VaultError("Vault authentication failed")
        logger.info(f"Authenticated to Vault at {self.vault_addr}")

    def read(self, path: str) -> Dict[str, str]:
        """
        All fields of materials/<path>.

        Raises:
            VaultError: Path missing or not readable with this role
        """
        full_path = f"{_SECRET_PREFIX}/{path}"
        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath:
            raise VaultError(f"Secret path '{full_path}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            raise VaultError(f"Access denied to secret '{full_path}': {e}")
        return response["data"]["data"]

    def get_secret(self, path: str, field: str) -> str:
        """
        One field of materials/<path>.

        Raises:
            VaultError: Path missing or not readable
            KeyError: Field absent from the secret
        """
        secret = self.read(path)
        if field not in secret:
            raise KeyError(
                f"Field '{field}' not found in secret '{_SECRET_PREFIX}/{path}'. "
                f"Available: {', '.join(secret)}"
            )
        return secret[field]


def _cached_fields(path: str, fields: list[str]) -> Dict[str, str]:
    global _vault_client_instance

    if path not in _secret_cache:
        if _vault_client_instance is None:
            _vault_client_instance = VaultClient()
        _secret_cache[path] = _vault_client_instance.read(path)

    secret = _secret_cache[path]
    missing = [f for f in fields if f not in secret]
    if missing:
        raise KeyError(f"Secret '{_SECRET_PREFIX}/{path}' lacks field(s): {', '.join(missing)}")
    return {f: secret[f] for f in fields}


def get_database_url() -> str:
    return _cached_fields("database", ["url"])["url"]


def get_valkey_url() -> str:
    return _cached_fields("valkey", ["url"])["url"]


def get_token_secret() -> str:
    """HMAC key for bearer tokens."""
    return _cached_fields("auth", ["token_secret"])["token_secret"]


def get_email_config() -> Dict[str, str]:
    """gateway_url, api_key, hmac_secret - the EmailGatewayClient kwargs."""
    return _cached_fields("email", ["gateway_url", "api_key", "hmac_secret"])


def get_storage_config() -> Dict[str, str]:
    """bucket, region, public_base_url, endpoint_url (region and endpoint_url may be empty)."""
    return _cached_fields("storage", ["bucket", "region", "public_base_url", "endpoint_url"])
