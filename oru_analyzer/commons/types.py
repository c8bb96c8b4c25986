from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, field_validator

from oru_analyzer.commons.constants import HEADER_MARKER

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent.parent / "configs" / "settings.yaml"


class CatalogCfg(BaseModel):
    source: str
    timeout_sec: float = 10.0
    refresh_sec: float = 0  # 0 = keep the parsed catalog for the whole process

    @field_validator("source")
    @classmethod
    def _not_empty(cls, v: str):
        if not v or not v.strip():
            raise ValueError("catalog.source es obligatorio")
        return v.strip()

    @field_validator("timeout_sec", "refresh_sec")
    @classmethod
    def _not_negative(cls, v: float):
        if v < 0:
            raise ValueError("must be >= 0")
        return v


class AnalysisCfg(BaseModel):
    header_marker: str = HEADER_MARKER


class Settings(BaseModel):
    app: Dict[str, Any] = {}
    paths: Dict[str, str] = {"logs_root": "logs"}
    catalog: CatalogCfg
    analysis: AnalysisCfg = AnalysisCfg()


def load_settings(path_or_obj: Optional[Union[str, Path, Dict[str, Any]]] = None) -> Settings:
    """Accepts a YAML path, an already loaded dict or nothing (packaged defaults)."""
    if isinstance(path_or_obj, dict):
        return Settings.model_validate(path_or_obj)
    path = Path(path_or_obj) if path_or_obj else DEFAULT_SETTINGS_PATH
    with open(path, "r", encoding="utf-8") as f:
        return Settings.model_validate(yaml.safe_load(f) or {})
