"""
JWKS manager: cache-first key set loading with background refresh.
"""

import asyncio
import concurrent.futures
import json
import time
from typing import Any, Callable, Coroutine, Optional, Set, Union

from shared.errors import JwksCacheError, JwksDecodeError, StorageError
from shared.logging import get_logger, reset_realm_context, set_realm_context
from .freshness import should_fetch
from .matcher import find_key
from .models import FetchPolicyConfig, KeyRecord, KeySet, RealmConfig
from .storage import KeyValueStore
from .transport import HttpTransport


CompletionCallback = Callable[[Optional[KeySet], Optional[JwksCacheError]], None]
ScheduledRefresh = Union[asyncio.Task, concurrent.futures.Future]

KEY_SUFFIX_FOR_JWKS = "jwks_content"
KEY_SUFFIX_FOR_REQUEST_DATE = "requested_date"


def entry_name_for_jwks_content(realm_name: str) -> str:
    """Storage key holding the serialized key set of a realm."""
    return f"{realm_name}_{KEY_SUFFIX_FOR_JWKS}"


def entry_name_for_requested_date(realm_name: str) -> str:
    """Storage key holding the last successful fetch time of a realm."""
    return f"{realm_name}_{KEY_SUFFIX_FOR_REQUEST_DATE}"


class JwksManager:
    """
    Manages the locally persisted JSON Web Key Set of each realm.

    ``load`` and ``fetch_if_needed`` never wait on the network: refreshes are
    scheduled as tasks on the event loop and write their result to the store
    when they complete. Concurrent refreshes of one realm are not deduplicated;
    the last write wins.
    """

    def __init__(
        self,
        transport: HttpTransport,
        store: KeyValueStore,
        policy: Optional[FetchPolicyConfig] = None,
        *,
        clock: Callable[[], float] = time.time,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.transport = transport
        self.store = store
        self.policy = policy or FetchPolicyConfig()
        self.clock = clock
        self.logger = get_logger("jwks.manager")

        # Loop used when called from a thread that is not running one
        self._loop = loop
        self._pending: Set[ScheduledRefresh] = set()

    entry_name_for_jwks_content = staticmethod(entry_name_for_jwks_content)
    entry_name_for_requested_date = staticmethod(entry_name_for_requested_date)

    def load(self, realm_config: RealmConfig) -> Optional[KeySet]:
        """
        Return the cached key set of a realm, or None if there is none yet.

        A cache hit schedules a refresh only when the cooldown has elapsed; a
        miss (or an undecodable entry) always schedules one. Either way the
        fetched keys only become visible to a later call.
        """
        realm = realm_config.realm_name
        entry_name = entry_name_for_jwks_content(realm)

        try:
            content = self.store.get_string(entry_name)
        except StorageError as exc:
            self.logger.error("Failed to read cached JWKS", realm=realm, error=str(exc))
            content = None

        if content is not None:
            try:
                key_set = KeySet.from_json(content)
            except JwksDecodeError as exc:
                self.logger.warning("Discarding undecodable cached JWKS", realm=realm, error=exc.message)
            else:
                self.logger.debug("JWKS cache hit", realm=realm, keys_count=len(key_set.keys))
                self.fetch_if_needed(realm_config, False)
                return key_set
        else:
            self.logger.debug("JWKS cache miss", realm=realm)

        self.fetch_if_needed(realm_config, True)
        return None

    def get_key(self, realm_config: RealmConfig, kid: str) -> Optional[KeyRecord]:
        """Look up a signing key in the cached key set of a realm."""
        key_set = self.load(realm_config)
        if key_set is None:
            return None

        key = find_key(key_set, kid)
        if key is None:
            self.logger.warning("Key not found", realm=realm_config.realm_name, kid=kid)
        return key

    def fetch_if_needed(
        self,
        realm_config: RealmConfig,
        force_fetch: bool,
        on_completed: Optional[CompletionCallback] = None,
    ) -> bool:
        """
        Schedule a fetch when forced or when the cooldown has elapsed.

        Returns True if a fetch was scheduled. The fetch itself is not awaited.
        """
        if not force_fetch and not self._should_request_jwks(realm_config):
            self.logger.debug("JWKS refresh skipped, within cooldown", realm=realm_config.realm_name)
            return False

        scheduled = self._schedule(self.fetch(realm_config, on_completed=on_completed))
        if scheduled:
            self.logger.info(
                "JWKS refresh scheduled",
                realm=realm_config.realm_name,
                forced=force_fetch
            )
        return scheduled

    async def fetch(
        self,
        realm_config: RealmConfig,
        on_completed: Optional[CompletionCallback] = None,
    ) -> Optional[KeySet]:
        """
        Request the key set from the identity provider and persist it.

        The raw response is stored before it is decoded, so a body that fails
        to decode still replaces the cached entry. Errors are reported only
        through ``on_completed``.
        """
        token = set_realm_context(realm_config.realm_name)
        try:
            return await self._fetch(realm_config, on_completed)
        finally:
            reset_realm_context(token)

    async def _fetch(
        self,
        realm_config: RealmConfig,
        on_completed: Optional[CompletionCallback],
    ) -> Optional[KeySet]:
        realm = realm_config.realm_name
        result = await self.transport.get(realm_config.jwks_url, params=None, headers=None)
        if result.error is not None:
            self.logger.error("Error fetching JWKS", realm=realm, **result.error.to_dict())
            return self._complete(on_completed, None, result.error)

        try:
            content = json.dumps(result.response, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            error = JwksDecodeError("JWKS response could not be serialized", {"error": str(exc)})
            self.logger.warning("Dropping unserializable JWKS response", realm=realm, error=str(exc))
            return self._complete(on_completed, None, error)

        try:
            self._persist_jwks(realm, content)
        except StorageError as exc:
            self.logger.error("Failed to persist JWKS", realm=realm, error=str(exc))
            return self._complete(on_completed, None, exc)

        try:
            key_set = KeySet.from_json(content)
        except JwksDecodeError as exc:
            self.logger.warning("Fetched JWKS could not be decoded", realm=realm, error=exc.message)
            return self._complete(on_completed, None, exc)

        self.logger.info("JWKS refreshed successfully", realm=realm, keys_count=len(key_set.keys))
        return self._complete(on_completed, key_set, None)

    async def wait_for_pending(self) -> None:
        """Wait until every refresh scheduled so far has finished."""
        while True:
            pending = [refresh for refresh in list(self._pending) if not refresh.done()]
            if not pending:
                return
            await asyncio.gather(
                *(
                    asyncio.wrap_future(refresh) if isinstance(refresh, concurrent.futures.Future) else refresh
                    for refresh in pending
                ),
                return_exceptions=True
            )

    @property
    def pending_count(self) -> int:
        return sum(1 for refresh in list(self._pending) if not refresh.done())

    def _should_request_jwks(self, realm_config: RealmConfig) -> bool:
        entry_name = entry_name_for_requested_date(realm_config.realm_name)
        try:
            last_fetch = self.store.get_double(entry_name)
        except StorageError as exc:
            self.logger.error("Failed to read JWKS request date", realm=realm_config.realm_name, error=str(exc))
            last_fetch = None

        return should_fetch(last_fetch, self.policy.min_time_between_jwks_requests, self.clock())

    def _persist_jwks(self, realm_name: str, content: str) -> None:
        time_fetched = self.clock()
        self.store.set_string(entry_name_for_jwks_content(realm_name), content)
        self.store.set_double(entry_name_for_requested_date(realm_name), time_fetched)

    def _schedule(self, coro: Coroutine[Any, Any, Optional[KeySet]]) -> bool:
        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        refresh: ScheduledRefresh
        if running_loop is not None:
            refresh = running_loop.create_task(coro)
        elif self._loop is not None and self._loop.is_running():
            refresh = asyncio.run_coroutine_threadsafe(coro, self._loop)
        else:
            coro.close()
            self.logger.warning("No running event loop, JWKS refresh not scheduled")
            return False

        self._pending.add(refresh)
        refresh.add_done_callback(self._on_refresh_done)
        return True

    def _on_refresh_done(self, refresh: ScheduledRefresh) -> None:
        self._pending.discard(refresh)
        if refresh.cancelled():
            return
        exc = refresh.exception()
        if exc is not None:
            self.logger.error("JWKS refresh failed", error=str(exc), error_type=exc.__class__.__name__)

    @staticmethod
    def _complete(
        on_completed: Optional[CompletionCallback],
        key_set: Optional[KeySet],
        error: Optional[JwksCacheError],
    ) -> Optional[KeySet]:
        if on_completed is not None:
            on_completed(key_set, error)
        return key_set
