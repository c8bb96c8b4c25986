import asyncio
import datetime
import json
import os
from typing import Optional

import typer

from oru_analyzer.commons.errors import AnalysisError
from oru_analyzer.commons.logger import setup_logging
from oru_analyzer.commons.oru_engine import ORUEngine
from oru_analyzer.commons.types import Settings, load_settings
from oru_analyzer.services.analysis_service import AnalysisService
from oru_analyzer.services.catalog_service import CatalogCache, make_catalog_source

app = typer.Typer(add_completion=False, help="ORU Analyzer")


def load_cfg(path: Optional[str]) -> Settings:
    # sin ruta se usa el settings.yaml empaquetado
    return load_settings(path)


def _parse_day(value: Optional[str]) -> Optional[datetime.date]:
    if not value:
        return None
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"{value!r} no es una fecha YYYY-MM-DD")


def _catalog_cache(cfg: Settings, catalog: Optional[str]) -> CatalogCache:
    source = make_catalog_source(catalog or cfg.catalog.source, cfg.catalog.timeout_sec)
    return CatalogCache(source, refresh_sec=cfg.catalog.refresh_sec)


@app.command()
def analyze(
    path: str = typer.Argument(..., help="Archivo ORU (.oru, .txt)"),
    catalog: Optional[str] = typer.Option(None, help="URL o ruta del catálogo CSV"),
    today: Optional[str] = typer.Option(
        None, callback=_parse_day, help="Fecha de referencia YYYY-MM-DD para la edad"
    ),
    config: Optional[str] = typer.Option(None, help="settings.yaml alternativo"),
):
    """Analiza un ORU y escribe en stdout los resultados anormales en JSON."""
    cfg = load_cfg(config)
    logger = setup_logging(cfg.paths.get("logs_root", "logs"), os.getenv("LOG_LEVEL", "INFO"))
    logger.log("INFO", f"Analizando {path}")

    engine = ORUEngine(cfg)
    svc = AnalysisService(engine, _catalog_cache(cfg, catalog))
    try:
        report = asyncio.run(svc.analyze_file(path, today=today))
    except (AnalysisError, OSError) as ex:
        typer.echo(f"Error processing file: {ex}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(engine.to_payload(report), ensure_ascii=False, indent=2))


@app.command("catalog")
def catalog_info(
    catalog: Optional[str] = typer.Option(None, help="URL o ruta del catálogo CSV"),
    config: Optional[str] = typer.Option(None, help="settings.yaml alternativo"),
):
    """Carga el catálogo y muestra un resumen."""
    cfg = load_cfg(config)
    setup_logging(cfg.paths.get("logs_root", "logs"), os.getenv("LOG_LEVEL", "INFO"))
    cache = _catalog_cache(cfg, catalog)
    try:
        loaded = asyncio.run(cache.get())
    except AnalysisError as ex:
        typer.echo(f"Error loading catalog: {ex}", err=True)
        raise typer.Exit(code=1)

    summary = {
        "source": repr(cache.source),
        "metrics": len(loaded),
        "dropped_rows": loaded.dropped_rows,
        "columns": list(loaded.columns),
    }
    typer.echo(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    app()
