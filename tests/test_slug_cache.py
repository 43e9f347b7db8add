import logging

import requests

from certificados.errors import ConfigurationError, UpstreamError
from certificados.services.slug_cache import SlugCache, get_known_slugs, init_slug_cache


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class Fetcher:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_empty_cache_fetches_and_stores():
    fetcher = Fetcher(["cedula", "arl"])
    cache = SlugCache(fetcher, clock=Clock())
    assert cache.get() == ["cedula", "arl"]
    assert cache.get() == ["cedula", "arl"]
    assert fetcher.calls == 1


def test_entry_expires_after_ttl():
    clock = Clock()
    fetcher = Fetcher(["a"], ["a", "b"])
    cache = SlugCache(fetcher, clock=clock)
    cache.get()
    clock.now += 24 * 60 * 60 - 1
    assert cache.get() == ["a"]
    clock.now += 2
    assert cache.get() == ["a", "b"]
    assert fetcher.calls == 2


def test_failure_serves_stale_value(caplog):
    clock = Clock()
    fetcher = Fetcher(["cedula"], UpstreamError(detail="HTTP 500"))
    cache = SlugCache(fetcher, clock=clock)
    cache.get()
    clock.now += 2 * 24 * 60 * 60
    with caplog.at_level(logging.WARNING, logger="gcp.crm"):
        assert cache.get() == ["cedula"]
    assert "stale cache" in caplog.text


def test_empty_result_keeps_previous_value():
    clock = Clock()
    fetcher = Fetcher(["cedula"], [])
    cache = SlugCache(fetcher, clock=clock)
    cache.get()
    assert cache.get(force_refresh=True) == ["cedula"]


def test_failure_without_previous_value_is_no_restriction():
    cache = SlugCache(Fetcher(ConfigurationError()), clock=Clock())
    assert cache.get() == []
    assert cache.value is None


def test_force_refresh_bypasses_fresh_entry():
    fetcher = Fetcher(["a"], ["b"])
    cache = SlugCache(fetcher, clock=Clock())
    cache.get()
    assert cache.get(force_refresh=True) == ["b"]


def test_clear_resets_state():
    cache = SlugCache(Fetcher(["a"]), clock=Clock())
    cache.get()
    cache.clear()
    assert cache.value is None and not cache.is_fresh()


def test_app_cache_without_crm_config_returns_empty(app):
    assert get_known_slugs() == []


def test_app_cache_uses_injected_fetcher(app):
    init_slug_cache(app, fetcher=lambda: ["cedula", "arl"])
    assert get_known_slugs() == ["cedula", "arl"]


def test_transport_error_serves_stale_value(caplog):
    fetcher = Fetcher(["cedula"], requests.ConnectionError("connection refused"))
    cache = SlugCache(fetcher, clock=Clock())
    cache.get()
    with caplog.at_level(logging.WARNING, logger="gcp.crm"):
        assert cache.get(force_refresh=True) == ["cedula"]
    assert "ConnectionError" in caplog.text


def test_transport_error_without_previous_value_is_no_restriction():
    cache = SlugCache(Fetcher(requests.ConnectionError("down")), clock=Clock())
    assert cache.get() == []


def test_failed_refresh_within_ttl_keeps_cached_list():
    clock = Clock()
    fetcher = Fetcher(["cedula", "arl"], UpstreamError(detail="HTTP 503"))
    cache = SlugCache(fetcher, clock=clock)
    cache.get()
    clock.now += 60 * 60
    assert cache.get(force_refresh=True) == ["cedula", "arl"]
    assert cache.is_fresh()
    assert fetcher.calls == 2
