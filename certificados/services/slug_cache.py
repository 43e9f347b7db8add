from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from flask import Flask, current_app

from ..constants import SLUG_CACHE_TTL_SECONDS
from ..errors import CertificadosError

logger = logging.getLogger("gcp.crm")

EXTENSION_KEY = "gcp_slug_cache"


class SlugCache:
    """Read-through cache of the CRM's known custom field slugs.

    A failed or empty fetch keeps serving the last good list, even past its
    TTL. With nothing cached it returns ``[]``, which callers read as "no
    restriction".
    """

    def __init__(
        self,
        fetcher: Callable[[], Sequence[str]],
        ttl: float = SLUG_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._fetcher = fetcher
        self._clock = clock
        self.ttl = ttl
        self.value: list[str] | None = None
        self.fetched_at: float | None = None

    def is_fresh(self) -> bool:
        if self.value is None or self.fetched_at is None:
            return False
        return self._clock() - self.fetched_at < self.ttl

    def get(self, force_refresh: bool = False) -> list[str]:
        if not force_refresh and self.is_fresh():
            return list(self.value)

        try:
            slugs = list(self._fetcher())
        except CertificadosError as exc:
            self._log_failure(exc.detail or exc.message)
            slugs = []
        except Exception as exc:
            # transport or database errors from the fetcher count as a failed fetch
            self._log_failure(repr(exc), exc_info=True)
            slugs = []

        if slugs:
            self.value = slugs
            self.fetched_at = self._clock()
            return list(slugs)
        return list(self.value) if self.value is not None else []

    def _log_failure(self, reason: str, exc_info: bool = False) -> None:
        logger.warning(
            "[CRM] slug refresh failed (%s); serving %s",
            reason,
            "stale cache" if self.value is not None else "empty list",
            exc_info=exc_info,
        )

    def clear(self) -> None:
        self.value = None
        self.fetched_at = None


def _fetch_from_crm() -> list[str]:
    from .crm_client import get_crm_client

    return get_crm_client().custom_field_slugs()


def init_slug_cache(app: Flask, fetcher: Callable[[], Sequence[str]] | None = None) -> SlugCache:
    cache = SlugCache(fetcher or _fetch_from_crm)
    app.extensions[EXTENSION_KEY] = cache
    return cache


def get_slug_cache() -> SlugCache:
    return current_app.extensions[EXTENSION_KEY]


def get_known_slugs(force_refresh: bool = False) -> list[str]:
    return get_slug_cache().get(force_refresh=force_refresh)
