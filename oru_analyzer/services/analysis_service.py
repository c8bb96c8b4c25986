# oru_analyzer/services/analysis_service.py
import datetime
from pathlib import Path
from typing import Optional

from oru_analyzer.commons.errors import AnalysisError
from oru_analyzer.commons.logger import logger
from oru_analyzer.commons.oru_engine import ORUEngine
from oru_analyzer.parsers.models import AnalysisReport
from oru_analyzer.services.catalog_service import CatalogCache


class AnalysisService:
    def __init__(self, engine: ORUEngine, catalog_cache: CatalogCache):
        self.engine = engine
        self.catalog_cache = catalog_cache

    async def analyze_text(
        self, text: str, today: Optional[datetime.date] = None, src: str = "<text>"
    ) -> AnalysisReport:
        try:
            # 1) valida y extrae (MSH obligatorio, al menos un valor numérico)
            parsed = self.engine.parse(text)
            logger.info(f"Found {len(parsed.observations)} test results in {src}")
            if parsed.skipped:
                logger.warning(f"{len(parsed.skipped)} segmento(s) descartados en {src}")

            # 2) catálogo (cacheado entre análisis)
            catalog = await self.catalog_cache.get()

            # 3) matching, clasificación y orden
            report = self.engine.analyze(parsed, catalog, today)
        except AnalysisError as ex:
            logger.error(f"Error processing {src}: {ex}")
            raise
        except Exception as ex:
            logger.exception(f"Fallo inesperado con {src}: {ex}")
            raise

        logger.info(
            f"Analysis complete: found {len(report.abnormal)} abnormal results "
            f"out of {len(report.observations)} total results"
        )
        return report

    async def analyze_file(self, path: str, today: Optional[datetime.date] = None) -> AnalysisReport:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
        return await self.analyze_text(text, today=today, src=path)
