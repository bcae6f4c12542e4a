#!/usr/bin/env python3
"""
Fetch a realm's JSON Web Key Set once and persist it to the configured store.

Useful from a developer workstation or a deploy job so that the first
``JwksManager.load`` of a fresh process finds keys in Redis.
"""

import argparse
import asyncio
import json
from pathlib import Path
import sys

from jwks_cache.app import (
    HttpxTransport,
    InMemoryKeyValueStore,
    JwksManager,
    RealmConfig,
    RedisKeyValueStore,
    entry_name_for_requested_date,
    realm_config_from_settings,
)
from shared.config import get_config
from shared.logging import configure_logging


async def warm(*, realm_config: RealmConfig, redis_url: str, prefix: str, timeout: float, dry_run: bool) -> dict:
    """Fetch and persist the key set, returning a summary."""
    store = InMemoryKeyValueStore() if dry_run else RedisKeyValueStore(redis_url, prefix=prefix)
    transport = HttpxTransport(timeout=timeout)
    manager = JwksManager(transport, store)

    date_entry = entry_name_for_requested_date(realm_config.realm_name)
    requested_before = store.get_double(date_entry)

    errors = []
    try:
        key_set = await manager.fetch(realm_config, on_completed=lambda _keys, error: errors.append(error))
    finally:
        await transport.close()

    error = errors[0] if errors else None
    # The body is persisted before it is decoded, so a decode error can
    # still mean the store was updated.
    persisted = store.get_double(date_entry) != requested_before
    return {
        "realm": realm_config.realm_name,
        "jwks_url": realm_config.jwks_url,
        "persisted": persisted and not dry_run,
        "kids": list(key_set.kids) if key_set is not None else [],
        "error": error.to_dict() if error is not None else None,
    }


def _parse_args(config) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Warm the persisted JWKS cache for a realm.")
    parser.add_argument("--realm", default=config.realm_name, help="Realm name")
    parser.add_argument("--server-url", default=config.auth_server_url, help="Keycloak base URL")
    parser.add_argument("--jwks-url", default=config.jwks_url, help="Explicit JWKS URL (overrides --server-url)")
    parser.add_argument("--redis-url", default=config.redis_url, help="Redis connection URL")
    parser.add_argument("--prefix", default=config.storage_prefix, help="Redis key prefix")
    parser.add_argument("--timeout", type=float, default=config.http_timeout, help="HTTP timeout in seconds")
    parser.add_argument("--dry-run", action="store_true", help="Fetch only; do not write to Redis")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write JSON summary")
    return parser.parse_args()


def main() -> int:
    config = get_config()
    args = _parse_args(config)
    configure_logging(config.service_name, config.log_level)

    config = config.model_copy(update={
        "realm_name": args.realm,
        "auth_server_url": args.server_url,
        "jwks_url": args.jwks_url,
    })
    try:
        summary = asyncio.run(
            warm(
                realm_config=realm_config_from_settings(config),
                redis_url=args.redis_url,
                prefix=args.prefix,
                timeout=args.timeout,
                dry_run=args.dry_run,
            )
        )
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[jwks-warm] failed: {exc}", file=sys.stderr)
        return 1

    if args.dry_run:
        print("[jwks-warm] DRY RUN - no Redis writes executed")

    print(json.dumps(summary, indent=2))

    if args.output:
        args.output.write_text(json.dumps(summary, indent=2))

    return 0 if summary["error"] is None else 1


if __name__ == "__main__":
    raise SystemExit(main())
