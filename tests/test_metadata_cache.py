import asyncio

import pytest

from dashboard.application.usecase.metadata_cache import MetadataCache
from dashboard.domain.errors import AuthenticationError
from tests.fakes import FakeCatalog, make_video


def test_catalog_is_fetched_once_per_session():
    catalog = FakeCatalog([make_video("a"), make_video("b")])
    cache = MetadataCache(catalog)

    async def scenario():
        first = await cache.ensure_cache()
        second = await cache.ensure_cache()
        return first, second

    first, second = asyncio.run(scenario())
    assert catalog.calls == 1
    assert set(first) == {"a", "b"}
    assert first is second


def test_concurrent_first_callers_share_one_fetch():
    catalog = FakeCatalog([make_video("a")])
    cache = MetadataCache(catalog)

    async def scenario():
        return await asyncio.gather(*(cache.ensure_cache() for _ in range(5)))

    results = asyncio.run(scenario())
    assert catalog.calls == 1
    assert all(result is results[0] for result in results)


def test_fetch_failure_fails_open_with_empty_map():
    catalog = FakeCatalog(error=RuntimeError("catalog down"))
    cache = MetadataCache(catalog)

    videos = asyncio.run(cache.ensure_cache())
    assert videos == {}
    assert cache.is_loaded
    # 실패도 메모되어 다시 요청하지 않는다.
    asyncio.run(cache.ensure_cache())
    assert catalog.calls == 1


def test_lookup_titles_projects_over_cache():
    catalog = FakeCatalog([make_video("a", title="First"), make_video("b", title="")])
    cache = MetadataCache(catalog)

    titles = asyncio.run(cache.lookup_titles(["a", "b", "missing"]))
    assert titles == {"a": "First", "b": "b"}
    assert catalog.calls == 1


def test_invalidate_forces_refetch():
    catalog = FakeCatalog([make_video("a")])
    cache = MetadataCache(catalog)
    asyncio.run(cache.ensure_cache())
    cache.invalidate()
    assert not cache.is_loaded
    asyncio.run(cache.ensure_cache())
    assert catalog.calls == 2


def test_fetch_failure_records_reason():
    cache = MetadataCache(FakeCatalog(error=RuntimeError("catalog down")))

    asyncio.run(cache.ensure_cache())

    assert "catalog down" in cache.failure
    cache.invalidate()
    assert cache.failure is None


def test_authentication_error_is_not_swallowed():
    catalog = FakeCatalog(error=AuthenticationError("token expired"))
    cache = MetadataCache(catalog)

    with pytest.raises(AuthenticationError):
        asyncio.run(cache.ensure_cache())
    # 인증 실패는 메모하지 않는다.
    assert not cache.is_loaded
    assert cache.failure is None
