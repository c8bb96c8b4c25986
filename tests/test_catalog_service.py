import httpx
import pytest

from oru_analyzer.commons.errors import CatalogFetchError, CatalogFormatError
from oru_analyzer.services.catalog_service import (
    CatalogCache,
    FileCatalogSource,
    HttpCatalogSource,
    make_catalog_source,
)
from tests.samples import CATALOG_CSV

URL = "https://example.org/diagnostic_metrics.csv"


class CountingSource:
    def __init__(self, text=CATALOG_CSV):
        self.text = text
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        return self.text


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_make_catalog_source():
    assert isinstance(make_catalog_source(URL), HttpCatalogSource)
    assert isinstance(make_catalog_source("data/catalog.csv"), FileCatalogSource)


@pytest.mark.asyncio
async def test_http_source_ok():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=CATALOG_CSV))
    text = await HttpCatalogSource(URL, transport=transport).fetch()
    assert text.startswith("name,oru_sonic_codes")


@pytest.mark.asyncio
async def test_http_source_error_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    with pytest.raises(CatalogFetchError):
        await HttpCatalogSource(URL, transport=transport).fetch()


@pytest.mark.asyncio
async def test_http_source_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CatalogFetchError):
        await HttpCatalogSource(URL, transport=httpx.MockTransport(handler)).fetch()


@pytest.mark.asyncio
async def test_file_source(tmp_path):
    p = tmp_path / "catalog.csv"
    p.write_text(CATALOG_CSV, encoding="utf-8")
    assert await FileCatalogSource(str(p)).fetch() == CATALOG_CSV
    with pytest.raises(CatalogFetchError):
        await FileCatalogSource(str(tmp_path / "missing.csv")).fetch()


@pytest.mark.asyncio
async def test_cache_keeps_catalog_for_session():
    src = CountingSource()
    cache = CatalogCache(src)
    first = await cache.get()
    second = await cache.get()
    assert first is second
    assert src.calls == 1


@pytest.mark.asyncio
async def test_cache_refreshes_after_ttl():
    src, clock = CountingSource(), FakeClock()
    cache = CatalogCache(src, refresh_sec=60, clock=clock)
    await cache.get()
    clock.now = 30
    await cache.get()
    assert src.calls == 1
    clock.now = 61
    await cache.get()
    assert src.calls == 2


@pytest.mark.asyncio
async def test_cache_invalidate():
    src = CountingSource()
    cache = CatalogCache(src)
    await cache.get()
    cache.invalidate()
    await cache.get()
    assert src.calls == 2


@pytest.mark.asyncio
async def test_cache_propagates_format_error():
    cache = CatalogCache(CountingSource(text=""))
    with pytest.raises(CatalogFormatError):
        await cache.get()


@pytest.mark.asyncio
async def test_http_source_follows_redirects():
    def handler(request):
        if request.url.path == "/diagnostic_metrics.csv":
            return httpx.Response(302, headers={"Location": "/real.csv"}, text="Found")
        return httpx.Response(200, text=CATALOG_CSV)

    text = await HttpCatalogSource(URL, transport=httpx.MockTransport(handler)).fetch()
    assert text == CATALOG_CSV


@pytest.mark.asyncio
async def test_http_source_unresolved_redirect_is_an_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(302, text="Found"))
    with pytest.raises(CatalogFetchError):
        await HttpCatalogSource(URL, transport=transport).fetch()


@pytest.mark.asyncio
async def test_file_source_strips_bom(tmp_path):
    p = tmp_path / "export.csv"
    p.write_bytes(b"\xef\xbb\xbf" + CATALOG_CSV.encode("utf-8"))
    text = await FileCatalogSource(str(p)).fetch()
    assert text.startswith("name,")
