import hashlib

import pytest

from external_choices.cache import ChoiceCache, MemoryCacheStore, get_ttl_for_frequency
from external_choices.models import Choice, RefreshFrequency, SourceDescriptor

URL = "https://example.com/test-data.csv"


def sample():
    return [Choice(label="A", value="1"), Choice(label="B", value="2")]


def test_round_trip(cache):
    cache.set(URL, sample())
    assert cache.get(URL) == sample()


def test_miss_returns_none(cache):
    assert cache.get(URL) is None


def test_clear(cache):
    cache.set(URL, sample())
    assert cache.clear(URL) is True
    assert cache.get(URL) is None
    assert cache.clear(URL) is False


def test_entry_expires_lazily(cache, clock):
    cache.set(URL, sample(), ttl=60)

    clock.advance(59)
    assert cache.get(URL) == sample()

    clock.advance(1)
    assert cache.get(URL) is None
    assert len(cache.store) == 0


def test_default_ttl_is_one_day(cache, clock):
    cache.set(URL, sample())
    clock.advance(24 * 3600 - 1)
    assert cache.get(URL) is not None
    clock.advance(1)
    assert cache.get(URL) is None


def test_set_replaces_entry(cache):
    cache.set(URL, sample())
    cache.set(URL, [Choice(label="C", value="3")])
    assert cache.get(URL) == [Choice(label="C", value="3")]


def test_key_is_prefixed_md5_of_identity():
    identity = f"{URL}|name|id"
    assert ChoiceCache.generate_key(identity) == "ext_choices_" + hashlib.md5(identity.encode(), usedforsecurity=False).hexdigest()


def test_key_hash_is_not_used_for_security(monkeypatch):
    calls = []
    real_md5 = hashlib.md5

    def recording_md5(*args, **kwargs):
        calls.append(kwargs)
        return real_md5(*args, **kwargs)

    monkeypatch.setattr(hashlib, "md5", recording_md5)

    ChoiceCache.generate_key(URL)
    assert calls == [{"usedforsecurity": False}]


def test_selectors_are_part_of_identity(cache):
    by_name = SourceDescriptor(locator=URL, label_selector="name", value_selector="id")
    by_code = SourceDescriptor(locator=URL, label_selector="code", value_selector="id")

    cache.set(by_name.identity(), sample())

    assert cache.get(by_name.identity()) == sample()
    assert cache.get(by_code.identity()) is None


@pytest.mark.parametrize(
    "frequency, seconds",
    [
        ("hourly", 3600),
        ("daily", 86400),
        ("weekly", 604800),
        (RefreshFrequency.WEEKLY, 604800),
        ("monthly", 86400),
        (None, 86400),
    ],
)
def test_ttl_for_frequency(frequency, seconds):
    assert get_ttl_for_frequency(frequency) == seconds
    assert ChoiceCache.get_ttl_for_frequency(frequency) == seconds


def test_status_stale_when_missing(cache):
    assert cache.get_status(URL).status == "stale"


def test_status_healthy_with_count(cache):
    cache.set(URL, sample())
    status = cache.get_status(URL)

    assert status.status == "healthy"
    assert status.count == 2
    assert status.message == "2 choices cached."


@pytest.mark.parametrize("raw", ["oops", [], {"label": "A"}])
def test_status_error_for_invalid_data(cache, raw):
    cache.store.set(cache.generate_key(URL), raw, 60)
    assert cache.get_status(URL).status == "error"


def test_malformed_entry_is_a_miss(cache):
    cache.store.set(cache.generate_key(URL), [{"unexpected": True}], 60)
    assert cache.get(URL) is None


def test_store_is_shared_between_caches(clock):
    store = MemoryCacheStore(clock)
    ChoiceCache(store).set(URL, sample())
    assert ChoiceCache(store).get(URL) == sample()
