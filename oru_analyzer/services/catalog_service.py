# oru_analyzer/services/catalog_service.py
import asyncio
import time
from pathlib import Path
from typing import Callable, Optional

import httpx

from oru_analyzer.commons.errors import CatalogFetchError
from oru_analyzer.commons.logger import logger
from oru_analyzer.parsers.catalog import parse_catalog
from oru_analyzer.parsers.models import Catalog


class HttpCatalogSource:
    def __init__(self, url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport  # tests inyectan httpx.MockTransport

    async def fetch(self) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport, follow_redirects=True
            ) as client:
                resp = await client.get(self.url, headers={"Cache-Control": "no-store"})
                resp.raise_for_status()
        except httpx.HTTPStatusError as ex:
            r = ex.response
            raise CatalogFetchError(
                f"Failed to fetch diagnostic metrics: {r.status_code} {r.reason_phrase}"
            ) from ex
        except httpx.HTTPError as ex:
            raise CatalogFetchError(f"Failed to fetch diagnostic metrics: {ex}") from ex
        return resp.text

    def __repr__(self) -> str:
        return f"HttpCatalogSource({self.url!r})"


class FileCatalogSource:
    def __init__(self, path: str):
        self.path = Path(path)

    async def fetch(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8-sig")
        except OSError as ex:
            raise CatalogFetchError(f"No se pudo leer el catálogo {self.path}: {ex}") from ex

    def __repr__(self) -> str:
        return f"FileCatalogSource({str(self.path)!r})"


def make_catalog_source(source: str, timeout: float = 10.0):
    if source.startswith(("http://", "https://")):
        return HttpCatalogSource(source, timeout=timeout)
    return FileCatalogSource(source)


class CatalogCache:
    """Parsed catalog shared across analysis runs.

    ``refresh_sec`` = 0 keeps the first successful load for the life of the
    process; otherwise the catalog is fetched again once it is older than
    that. A failed load leaves the previous snapshot untouched.
    """

    def __init__(self, source, refresh_sec: float = 0, clock: Callable[[], float] = time.monotonic):
        self.source = source
        self.refresh_sec = refresh_sec
        self._clock = clock
        self._catalog: Optional[Catalog] = None
        self._loaded_at = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        if self._catalog is None:
            return False
        if not self.refresh_sec:
            return True
        return self._clock() - self._loaded_at < self.refresh_sec

    async def get(self) -> Catalog:
        async with self._lock:
            if not self._is_fresh():
                logger.info(f"Cargando catálogo desde {self.source!r}")
                text = await self.source.fetch()
                self._catalog = parse_catalog(text)
                self._loaded_at = self._clock()
            return self._catalog

    def invalidate(self) -> None:
        self._catalog = None
