"""
JWKS cache package.

Keeps a locally persisted copy of each realm's JSON Web Key Set and refreshes
it in the background. Token validation consumes the keys returned here.

Key points:
- ``JwksManager.load`` is cache-first and never waits on the network.
- Refreshes are throttled per realm by ``min_time_between_jwks_requests``.
- ``find_key`` selects a key by kid; on duplicates the last key wins.
"""

from typing import Optional

from shared.config import BaseConfig
from .freshness import should_fetch
from .manager import JwksManager, entry_name_for_jwks_content, entry_name_for_requested_date
from .matcher import find_key
from .models import FetchPolicyConfig, KeyRecord, KeySet, RealmConfig
from .storage import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from .transport import HttpTransport, HttpxTransport, TransportResult


def realm_config_from_settings(config: BaseConfig) -> RealmConfig:
    """Build the realm config, preferring an explicit JWKS URL."""
    if config.jwks_url:
        return RealmConfig(realm_name=config.realm_name, jwks_url=config.jwks_url)
    return RealmConfig.for_server(config.auth_server_url, config.realm_name)


def build_store(config: BaseConfig) -> KeyValueStore:
    if config.storage_backend == "redis":
        return RedisKeyValueStore(config.redis_url, prefix=config.storage_prefix)
    return InMemoryKeyValueStore()


def build_manager(
    config: BaseConfig,
    *,
    transport: Optional[HttpTransport] = None,
    store: Optional[KeyValueStore] = None,
) -> JwksManager:
    """Wire a JwksManager from settings."""
    return JwksManager(
        transport or HttpxTransport(timeout=config.http_timeout),
        store if store is not None else build_store(config),
        FetchPolicyConfig(min_time_between_jwks_requests=config.min_time_between_jwks_requests),
    )


__all__ = [
    "FetchPolicyConfig",
    "HttpTransport",
    "HttpxTransport",
    "InMemoryKeyValueStore",
    "JwksManager",
    "KeyRecord",
    "KeySet",
    "KeyValueStore",
    "RealmConfig",
    "RedisKeyValueStore",
    "TransportResult",
    "build_manager",
    "build_store",
    "entry_name_for_jwks_content",
    "entry_name_for_requested_date",
    "find_key",
    "realm_config_from_settings",
    "should_fetch",
]
