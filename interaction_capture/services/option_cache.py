"""TTL cache for the form's option sets.

The form must always have something to show. Lookup order:

1. fresh cached value (younger than ``ttl_seconds``)      -> source "cache"
2. loader result, empty sets filled from last-known-good   -> source "live"
3. loader failed: last-known-good, however old             -> source "stale"
4. nothing ever loaded: built-in defaults                  -> source "default"

The clock is injected so tests can move time without sleeping.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from interaction_capture.exceptions import TransportError
from interaction_capture.services.form_options import (
    OPTION_KINDS,
    FormOptionSets,
    load_active_option_sets,
)

logger = logging.getLogger(__name__)

OptionLoader = Callable[[], Awaitable[FormOptionSets]]

SOURCE_LIVE = "live"
SOURCE_CACHE = "cache"
SOURCE_STALE = "stale"
SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class CachedOptions:
    options: FormOptionSets
    source: str
    fetched_at: Optional[float] = None


class OptionCache:
    """Best-effort cache in front of an option loader.

    Usage::

        cache = get_option_cache()
        cached = await cache.get()
        cached.options.names("channel")

    ``get`` never raises for lookup failures and never returns an empty set.
    """

    def __init__(
        self,
        loader: OptionLoader,
        *,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        defaults: Optional[FormOptionSets] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.defaults = defaults or FormOptionSets.defaults()
        self.timeout = timeout
        self._value: Optional[FormOptionSets] = None
        self._fetched_at: Optional[float] = None
        self._lock = asyncio.Lock()

    def is_fresh(self) -> bool:
        if self._value is None or self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self.ttl_seconds

    def invalidate(self) -> None:
        """Force the next ``get`` to reload. Last-known-good is kept as fallback."""
        self._fetched_at = None

    async def get(self, force_refresh: bool = False) -> CachedOptions:
        if not force_refresh and self.is_fresh():
            return CachedOptions(self._value, SOURCE_CACHE, self._fetched_at)

        async with self._lock:
            # Another caller may have refreshed while we waited.
            if not force_refresh and self.is_fresh():
                return CachedOptions(self._value, SOURCE_CACHE, self._fetched_at)
            return await self._refresh()

    async def _refresh(self) -> CachedOptions:
        try:
            loaded = await asyncio.wait_for(self._loader(), timeout=self.timeout)
        except (TransportError, asyncio.TimeoutError) as exc:
            if self._value is not None:
                logger.warning("Option lookup failed, serving last-known-good options: %s", exc)
                return CachedOptions(self._value, SOURCE_STALE, self._fetched_at)
            logger.warning("Option lookup failed, serving default options: %s", exc)
            return CachedOptions(self.defaults, SOURCE_DEFAULT)

        if not any(loaded.names(kind) for kind in OPTION_KINDS):
            logger.info("No active options configured, serving default options")
            merged, source = self.defaults, SOURCE_DEFAULT
        else:
            merged, source = loaded, SOURCE_LIVE
            if not merged.is_complete():
                logger.info("Some option sets are empty, filling them from fallback options")
                merged = loaded.fill_from(self._value or self.defaults).fill_from(self.defaults)

        self._value = merged
        self._fetched_at = self._clock()
        return CachedOptions(merged, source, self._fetched_at)


async def load_options_from_database() -> FormOptionSets:
    """Default loader: active options from the local ``form_options`` table."""
    from interaction_capture.database import AsyncSessionLocal

    try:
        async with AsyncSessionLocal() as db:
            return await load_active_option_sets(db)
    except (SQLAlchemyError, OSError) as exc:
        raise TransportError("Could not load form options", cause=exc) from exc


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------
_instance: Optional[OptionCache] = None


def get_option_cache() -> OptionCache:
    """Return the process-wide option cache, built from settings on first use."""
    global _instance
    if _instance is None:
        from interaction_capture.config import get_settings

        settings = get_settings()
        _instance = OptionCache(
            load_options_from_database,
            ttl_seconds=settings.OPTIONS_CACHE_TTL_SECONDS,
            timeout=settings.LOOKUP_TIMEOUT_SECONDS,
        )
    return _instance


def reset_option_cache() -> None:
    """Destroy the singleton (useful for tests)."""
    global _instance
    _instance = None
