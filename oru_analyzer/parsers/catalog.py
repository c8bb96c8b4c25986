from typing import Dict, List

from pydantic import ValidationError

from oru_analyzer.commons.constants import CATALOG_COLUMNS
from oru_analyzer.commons.errors import CatalogFormatError
from oru_analyzer.commons.logger import logger

from .models import Catalog, DiagnosticMetric


def split_csv_line(line: str) -> List[str]:
    """Split one catalog line on commas outside double quotes.

    A quote only toggles the "inside quotes" state and is not kept, so
    ``a,"b, c",d`` gives ``["a", "b, c", "d"]``.
    """
    values: List[str] = []
    current: List[str] = []
    in_quotes = False
    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(ch)
    values.append("".join(current))
    return values


def _row_to_dict(headers: List[str], values: List[str]) -> Dict[str, str]:
    return {h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)}


def parse_catalog(text: str) -> Catalog:
    """Parse the reference catalog CSV.

    The first non-blank line names the columns. Rows without ``name`` or
    ``oru_sonic_codes`` are dropped.

    Raises CatalogFormatError when there is no header plus data, or when no
    row survives validation.
    """
    # Excel y similares exportan con BOM
    text = (text or "").lstrip("\ufeff")
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise CatalogFormatError("CSV data is invalid or empty")

    headers = [h.strip() for h in lines[0].split(",")]
    missing = [c for c in CATALOG_COLUMNS if c not in headers]
    if missing:
        logger.warning(f"Catálogo sin columnas {missing}; se tomarán como vacías")

    metrics: List[DiagnosticMetric] = []
    dropped = 0
    for n, line in enumerate(lines[1:], start=2):
        row = _row_to_dict(headers, split_csv_line(line))
        try:
            metrics.append(DiagnosticMetric.model_validate(row))
        except ValidationError as ve:
            dropped += 1
            logger.debug(f"Fila {n} del catálogo descartada: {ve.error_count()} error(es)")

    if not metrics:
        raise CatalogFormatError("Failed to load diagnostic metrics data (no valid rows)")

    logger.info(f"Loaded {len(metrics)} diagnostic metrics ({dropped} rows dropped)")
    return Catalog(metrics=tuple(metrics), columns=tuple(headers), dropped_rows=dropped)
